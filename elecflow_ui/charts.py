import matplotlib.pyplot as plt


def bar_chart(title: str, labels, values, ylabel: str = "", colors=None):
    fig = plt.figure()
    ax = fig.add_subplot(111)
    ax.bar(list(labels), list(values), color=colors)
    ax.set_title(title)
    ax.set_ylabel(ylabel)
    ax.tick_params(axis="x", labelrotation=30)
    fig.tight_layout()
    return fig


def line_chart(title: str, y, x=None, ylabel: str = "", xlabel: str = "hour"):
    fig = plt.figure()
    ax = fig.add_subplot(111)
    if x is None:
        x = list(range(len(y)))
    ax.plot(x, y)
    ax.set_title(title)
    ax.set_xlabel(xlabel)
    ax.set_ylabel(ylabel)
    return fig
