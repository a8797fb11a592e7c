#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Start the FastAPI server with error handling."""
import sys
import traceback

print("=" * 70)
print("Starting RED Insight Engine")
print("=" * 70)

# Step 1: Test imports
print("\n[1/3] Testing imports...")
try:
    from app.main import app
    print(f"✓ App imported: {app.title} v{app.version}")
    print(f"✓ Routes registered: {len(app.routes)}")
except Exception as e:
    print(f"✗ Import failed: {e}")
    traceback.print_exc()
    sys.exit(1)

# Step 2: Check Gemini credentials (optional)
print("\n[2/3] Checking Gemini settings...")
from app.core.config import get_settings

settings = get_settings()
if settings.use_mock_gemini:
    print("⚠ USE_MOCK_GEMINI=true, responses are canned")
elif settings.gemini_api_key:
    print(f"✓ GEMINI_API_KEY set, text_model={settings.gemini_text_model}, "
          f"image_model={settings.gemini_image_model}")
else:
    print("⚠ GEMINI_API_KEY is not set; every analysis will fail until it is")

# Step 3: Start server
print("\n[3/3] Starting server...")
print("=" * 70)
print("Dashboard: http://127.0.0.1:8000/")
print("API Documentation: http://127.0.0.1:8000/docs")
print("=" * 70)
print("\nPress Ctrl+C to stop the server\n")

try:
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info"
    )
except KeyboardInterrupt:
    print("\n\nServer stopped by user")
except Exception as e:
    print(f"\n✗ Server failed to start: {e}")
    traceback.print_exc()
    sys.exit(1)
