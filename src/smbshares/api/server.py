from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from smbshares.api.routers import backups, settings, shares

app = FastAPI(
    title="Custom SMB Shares API",
    description="An API for managing custom samba share definitions.",
    version="0.1.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],  # Frontend origin
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(shares.router)
app.include_router(backups.router)
app.include_router(settings.router)
