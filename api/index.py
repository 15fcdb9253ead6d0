"""Vercel serverless entry point for the Styliner preview server."""
import sys
import os

# Add src to path so imports work
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from styliner.web.app import create_app

# Serve the directory named by STYLINER_BASE_DIR, or the repository root
base_dir = os.environ.get(
    "STYLINER_BASE_DIR", os.path.join(os.path.dirname(__file__), "..")
)

app = create_app(base_dir)
