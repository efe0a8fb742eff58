# audioscribe/audio/__init__.py
# ==============================
# Audio Processing Layer — audioscribe
#
# Responsibility:
#   - Wrap the external audio toolkit (ffprobe / ffmpeg)
#   - Probe duration and scan for silence
#   - Plan silence-aware (or fixed-length) chunk windows
#   - Render chunk files and clean them up
