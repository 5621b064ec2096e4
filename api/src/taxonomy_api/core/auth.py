#!/usr/bin/env python3

import logging
import secrets

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .env_utils import read_env

logger = logging.getLogger(__name__)
security = HTTPBearer()

# Development token, the portal backend forwards its own in production
DEFAULT_DEV_TOKEN = "devtoken"


def verify_token(credentials: HTTPAuthorizationCredentials = Depends(security)) -> str:
    """Verify the bearer token forwarded by the portal"""
    expected_token = read_env("DEV_TOKEN", DEFAULT_DEV_TOKEN)

    if expected_token == DEFAULT_DEV_TOKEN:
        logger.warning("Using default DEV_TOKEN='devtoken'. Set DEV_TOKEN for shared deployments")

    if not secrets.compare_digest(credentials.credentials, expected_token):
        raise HTTPException(status_code=401, detail="Invalid authentication token")

    return credentials.credentials
