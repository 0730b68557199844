#!/usr/bin/env python3
# backend/run.py
"""
Development server runner.

Creates the schema on first start, then serves the API with reload enabled.
"""
import os
from pathlib import Path
import sys

# Add backend to path
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

import uvicorn

from classbook.init_db import init_db

if __name__ == "__main__":
    init_db()
    print("Starting Classbook API at http://localhost:8000")
    print("API Docs: http://localhost:8000/docs")

    uvicorn.run("classbook.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
