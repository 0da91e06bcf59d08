"""
Tile Mosaic — web front-end

Run with:
    streamlit run streamlit_app.py
"""

from __future__ import annotations

import io
import tempfile
import time
from pathlib import Path

import streamlit as st
from PIL import Image

from tile_mosaic.composer import MosaicComposer
from tile_mosaic.config import MosaicConfig
from tile_mosaic.errors import MosaicError
from tile_mosaic.image_io import RasterImage
from tile_mosaic.metrics import mean_delta_e, mean_rgb_error, preview_from_grid

# -- Page config -------------------------------------------------------
st.set_page_config(
    page_title="Tile Mosaic",
    page_icon=None,
    layout="wide",
    initial_sidebar_state="collapsed",
)

_DEFAULTS = MosaicConfig()
# st.image chokes on multi-gigapixel arrays; the download keeps full size.
_PREVIEW_MAX_SIDE = 2000


# -- Helpers -----------------------------------------------------------

def _display_copy(image: RasterImage) -> Image.Image:
    img = Image.fromarray(image.array)
    img.thumbnail((_PREVIEW_MAX_SIDE, _PREVIEW_MAX_SIDE), Image.BOX)
    return img


def _read_upload(data: bytes, suffix: str) -> RasterImage:
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / f"target{suffix}"
        path.write_bytes(data)
        return RasterImage.read(path)


# -- Title -------------------------------------------------------------
st.title("Tile Mosaic")
st.caption(
    "Upload an image and it is rebuilt from a folder of small tile images. "
    "The image is first shrunk by the scale factor; every remaining pixel is "
    "then replaced by the tile whose average colour is closest to it."
)

# -- Controls ----------------------------------------------------------
ctrl1, ctrl2, ctrl3 = st.columns(3)
with ctrl1:
    tiles_dir = st.text_input("Tile folder", str(_DEFAULTS.tiles_dir))
with ctrl2:
    scale = st.slider("Scale", 0.01, 1.0, _DEFAULTS.scale, step=0.01)
with ctrl3:
    tile_side = st.slider("Tile side (px)", 1, 200, _DEFAULTS.tile_side)

use_cache = st.checkbox("Cache resized tiles on disk", value=_DEFAULTS.use_cache)

st.markdown("---")

# -- Upload ------------------------------------------------------------
uploaded = st.file_uploader(
    "Target image", type=[ext.lstrip(".") for ext in sorted(_DEFAULTS.SUPPORTED_EXTENSIONS)],
)

if uploaded is not None:
    try:
        target = _read_upload(uploaded.getvalue(), Path(uploaded.name).suffix)
    except MosaicError as exc:
        st.error(str(exc))
        st.stop()

    st.image(_display_copy(target), caption=f"{target.width} × {target.height}", width=400)

    if st.button("COMPOSE", type="primary", use_container_width=True):
        cfg = MosaicConfig(
            scale=scale,
            tile_side=tile_side,
            tiles_dir=Path(tiles_dir),
            use_cache=use_cache,
        )
        with st.spinner("Composing ..."):
            t0 = time.perf_counter()
            try:
                result = MosaicComposer(cfg).build(target)
            except MosaicError as exc:
                st.error(str(exc))
                st.stop()
            elapsed = time.perf_counter() - t0

        st.image(_display_copy(result.image), use_container_width=True)

        preview = preview_from_grid(result.index_map, result.tiles)
        rows, cols = result.index_map.shape
        m1, m2, m3, m4 = st.columns(4)
        m1.metric("Grid", f"{cols} × {rows}")
        m2.metric("RGB error", f"{mean_rgb_error(result.target.array, preview):.1f}")
        m3.metric("ΔE (CIE76)", f"{mean_delta_e(result.target.array, preview):.1f}")
        m4.metric("Time", f"{elapsed:.1f} s")

        buf = io.BytesIO()
        Image.fromarray(result.image.array).save(buf, format="PNG")
        st.download_button(
            "SAVE MOSAIC",
            data=buf.getvalue(),
            file_name=f"{Path(uploaded.name).stem}{_DEFAULTS.output_suffix}.png",
            mime="image/png",
            use_container_width=True,
        )
