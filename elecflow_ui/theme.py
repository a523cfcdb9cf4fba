# Page and diagram styling shared by the streamlit widgets.
ACCENT = "#0d6a04"
BORDER = "rgba(237,239,242,0.18)"
TEXT = "#EDEFF2"
TEXT_DIM = "rgba(237,239,242,0.65)"
TINT = "rgba(255,255,255,0.25)"
FALLBACK_FILL = "#888888"
FONT_FAMILY = "sans-serif"

# Pixel room reserved around the flow panels for labels.
LABEL_WIDTH_PX = 110
