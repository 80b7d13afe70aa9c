#!/usr/bin/env python
"""Script to run the Studium AI backend server."""
import os
import sys
from pathlib import Path

# Run from the project root so relative paths (.env, sqlite file) resolve
project_dir = Path(__file__).resolve().parent
sys.path.insert(0, str(project_dir))
os.chdir(project_dir)

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "studium.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "5000")),
        reload=os.getenv("APP_ENV", "development") == "development",
    )
