# =============================================================================
# API Package — FastAPI Route Handlers
# =============================================================================
# Each module defines an APIRouter for one feature:
#   - documents.py: Document upload (POST /api/documents/upload)
#   - chat.py: Question answering (POST /api/chat)
#   - health.py: Liveness (GET /health)
#   - metrics.py: Prometheus exposition (GET /metrics)
# Shared pieces:
#   - dependencies.py: Service singletons injected via Depends()
#   - errors.py: Exception → JSON error body mapping
# =============================================================================
