import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from meshvocab.routers.vocabulary import router as vocabulary_router

app = FastAPI(title="MeSH Vocabulary API", version="0.1.0")

# CORS: load origins from env (comma-separated), default to localhost dev server
_cors_env = os.environ.get("CORS_ORIGINS", "http://localhost:5173")
cors_origins = [o.strip() for o in _cors_env.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)

app.include_router(vocabulary_router)


@app.get("/api/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
