"""
Tile Mosaic - Gallery Edition

Run with:
    streamlit run streamlit_app.py
"""

from __future__ import annotations

import io
import time
from pathlib import Path

import numpy as np
import streamlit as st
from PIL import Image

from tile_mosaic.config import MosaicConfig
from tile_mosaic.errors import MosaicError
from tile_mosaic.service import load_index, render_mosaic
from tile_mosaic.tile_index import TileIndex

# -- Page config -------------------------------------------------------
st.set_page_config(
    page_title="Tile Mosaic",
    page_icon=None,
    layout="wide",
    initial_sidebar_state="collapsed",
)

_DEFAULTS = MosaicConfig()

# -- CSS ---------------------------------------------------------------
st.markdown("""
<style>
    .stApp {
        background: linear-gradient(135deg, #1a1a2e 0%, #16213e 100%);
        color: #ffffff;
    }
    .block-container {
        max-width: 1200px;
        padding-top: 3rem;
    }
    .gallery-title {
        font-size: 2.5rem;
        text-align: center;
        background: linear-gradient(90deg, #f093fb, #f5576c);
        -webkit-background-clip: text;
        -webkit-text-fill-color: transparent;
    }
    .gallery-subtitle {
        text-align: center;
        color: #888888;
        margin-bottom: 2rem;
    }
    #MainMenu {visibility: hidden;}
    footer {visibility: hidden;}
</style>
""", unsafe_allow_html=True)


# -- Tile index: built once per library, shared by every session --------
@st.cache_resource(show_spinner="Loading tile colours ...")
def _get_index(library_dir: str) -> TileIndex:
    return load_index(MosaicConfig(library_dir=Path(library_dir)))


# -- Title -------------------------------------------------------------
st.markdown('<div class="gallery-title">Tile Mosaic Generator</div>', unsafe_allow_html=True)
st.markdown(
    '<div class="gallery-subtitle">'
    "Upload a photo and it is rebuilt out of the images in the tile library: "
    "every cell is replaced by the tile whose average colour is closest."
    "</div>",
    unsafe_allow_html=True,
)

library_dir = st.text_input("Tile library", str(_DEFAULTS.library_dir))
index = _get_index(library_dir)
if len(index) == 0:
    st.warning(f"No usable tiles found in {library_dir}/")
    st.stop()
st.caption(f"{len(index)} tiles in {len(index.collections())} collections")

# -- Controls ----------------------------------------------------------
ctrl1, ctrl2 = st.columns(2)
with ctrl1:
    tile_size = st.slider("Tile size (px)", 10, 50, _DEFAULTS.tile_size)
with ctrl2:
    output_tile_size = st.slider("Output tile (px)", 16, 64, _DEFAULTS.output_tile_size)

# -- Upload ------------------------------------------------------------
uploaded = st.file_uploader(
    "Select image", type=["jpg", "jpeg", "png", "webp", "bmp", "jfif"],
)

if uploaded is not None:
    source_bytes = uploaded.getvalue()

    if st.button("GENERATE MOSAIC", type="primary", use_container_width=True):
        t0 = time.perf_counter()
        try:
            with st.spinner("Generating your mosaic ..."):
                data, report = render_mosaic(
                    source_bytes, tile_size, output_tile_size, index,
                    rng=np.random.default_rng(),
                )
        except MosaicError as exc:
            st.error(str(exc))
            st.stop()
        elapsed = time.perf_counter() - t0

        left, right = st.columns(2)
        with left:
            st.markdown("#### Original")
            st.image(Image.open(io.BytesIO(source_bytes)), use_container_width=True)
        with right:
            st.markdown("#### Mosaic")
            st.image(data, use_container_width=True)
            st.caption(
                f"{report.cols * output_tile_size} x {report.rows * output_tile_size} px  "
                f"·  {report.distinct_tiles} distinct tiles  ·  {elapsed:.1f} s"
            )
            st.download_button(
                "DOWNLOAD MOSAIC",
                data=data,
                file_name="tile_mosaic.png",
                mime="image/png",
                use_container_width=True,
            )
