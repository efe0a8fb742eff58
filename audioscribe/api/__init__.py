# audioscribe/api/__init__.py
# ============================
# API Layer — audioscribe
#
# Responsibility:
#   - Expose POST /api/v1/audio/transcribe (multipart field "file")
#   - Resolve the OpenAI credential (X-OpenAI-API-Key header or config)
#   - Reject missing, unsupported, or oversize uploads
#   - Return the structured transcript JSON
