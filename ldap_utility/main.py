from __future__ import annotations

from fastapi import FastAPI

from .db import engine
from .env_settings import get_env
from .log_config import setup_logging
from .models import Base
from .routers import auth

env = get_env()
setup_logging(level=env.log_level, log_dir=env.log_dir, retention_days=env.log_retention_days)

Base.metadata.create_all(bind=engine)

app = FastAPI(title="LDAP Utility")
app.include_router(auth.router)
