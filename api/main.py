from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.dependencies import shutdown_aggregator
from api.routers import sentiment


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await shutdown_aggregator()


app = FastAPI(
    title="FX Sentiment Aggregation API",
    description="Retail long/short positioning aggregated from broker websites.",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS (Allow local frontend development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include Routers
app.include_router(sentiment.router)

@app.get("/")
def root():
    return {"status": "ok", "message": "Sentiment API is running"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
