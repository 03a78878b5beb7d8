"""
Entry point for running vault_router as a module.
Usage: python -m vault_router
"""

from .app import create_app

if __name__ == "__main__":
    # Start the Flask development server
    create_app().run(debug=True, host="0.0.0.0", port=5000)
