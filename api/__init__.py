"""api/ -- HTTP layer: FastAPI app, request/response models and routes.

Layer rule: api/ may import from auth/, directory/ and core/. Nothing imports api/.
"""
