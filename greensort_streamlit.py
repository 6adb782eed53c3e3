# greensort_streamlit.py
import io
import logging
from typing import Optional, Tuple

import streamlit as st
from PIL import Image

from app.client import DEFAULT_API_BASE_URL, GreenSortClient, is_failure

# ----------------------------
# Configuration / Constants
# ----------------------------
MAX_FILE_SIZE = 15 * 1024 * 1024  # 15 MB, same cap as the API body limit
APP_TITLE = "GreenSort AI"
LANGUAGES = {"Tiếng Việt": "vi", "English": "en"}
MIME_TYPES = {"JPEG": "image/jpeg", "PNG": "image/png", "WEBP": "image/webp"}

st.set_page_config(page_title=APP_TITLE, layout="wide")

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("greensort_app")


# ----------------------------
# Helper functions
# ----------------------------

def bytes_to_kb(n: int) -> float:
    return n / 1024.0 if n is not None else 0.0


def load_image(file) -> Tuple[Optional[Image.Image], Optional[bytes], Optional[str]]:
    """Read an uploaded file, returning (image, raw bytes, error)."""
    if file is None:
        return None, None, "No file provided."

    data = file.getvalue()
    if len(data) > MAX_FILE_SIZE:
        return None, None, f"File too large: {bytes_to_kb(len(data)):.0f} KB (max {bytes_to_kb(MAX_FILE_SIZE):.0f} KB)"

    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except Exception:
        return None, None, "Uploaded file is not a supported image or is corrupted."

    return image, data, None


# ----------------------------
# Sidebar
# ----------------------------

api_base_url = st.sidebar.text_input("API Base URL", value=DEFAULT_API_BASE_URL)
client = GreenSortClient(api_base_url)

if st.sidebar.button("Test API Connection"):
    with st.spinner("Pinging API..."):
        is_up, info = client.health()
    if is_up:
        st.sidebar.success("API reachable")
    else:
        st.sidebar.error(f"API unreachable — {info}")

lang_label = st.sidebar.radio("Response language", list(LANGUAGES.keys()))
lang = LANGUAGES[lang_label]

st.sidebar.markdown("---")
st.sidebar.subheader("Waste categories")
try:
    for c in client.categories(lang):
        st.sidebar.text(f"• {c}")
except Exception as e:
    st.sidebar.caption(f"Categories unavailable: {e}")


# ----------------------------
# Main area
# ----------------------------

st.title(APP_TITLE)
st.markdown("Upload a photo of a single item to find out which bin it belongs in.")

uploaded_file = st.file_uploader("Upload image (JPEG/PNG/WEBP) — max 15 MB", type=["jpg", "jpeg", "png", "webp"])

if uploaded_file is None:
    st.info("No image selected. Upload a photo to get started.")
    st.stop()

image, image_bytes, err = load_image(uploaded_file)
if err:
    st.error(err)
    st.stop()

cols = st.columns([1, 1])
with cols[0]:
    st.subheader("Preview")
    st.image(image, width="stretch")
with cols[1]:
    st.subheader("Image details")
    st.write(f"Filename: {uploaded_file.name}")
    st.write(f"Dimensions: {image.width} x {image.height} px")
    st.write(f"Size: {bytes_to_kb(len(image_bytes)):.0f} KB")

if st.button("Start analysis"):
    mime = MIME_TYPES.get(image.format or "", uploaded_file.type or "image/jpeg")
    with st.spinner("Analyzing — please wait..."):
        result, error = client.analyze(image_bytes, mime, lang)

    if error:
        st.error(f"Analysis failed — {error}")
    elif is_failure(result):
        st.warning(f"{result['object']}: {result['instruction']}")
        st.caption(result.get("tip", ""))
    else:
        st.success("Analysis complete")
        st.subheader(result.get("object", ""))
        st.write(f"**Material:** {result.get('material', '')}")
        st.write(f"**Category:** {result.get('category', '')}")
        st.write(f"**Confidence:** {result.get('confidence')}%")
        st.markdown("---")
        st.write(f"**How to dispose:** {result.get('instruction', '')}")
        st.info(result.get("tip", ""))
