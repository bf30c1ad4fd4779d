#!/usr/bin/env python3
"""
Run script for the Mindspace voice backend
"""
import uvicorn

from mindspace.config.settings import settings
from mindspace.main import app

if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port, reload=settings.debug)
