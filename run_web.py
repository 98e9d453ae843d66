#!/usr/bin/env python3
"""
Simple direct startup for the web API
"""

import os

from article_fact_checker.utils.logging import setup_logging
from article_fact_checker.web import create_app

setup_logging(level=os.environ.get('LOG_LEVEL', 'INFO'))
app = create_app()

if __name__ == '__main__':
    port = int(os.environ.get('PORT', 8080))
    print(f"Server starting on http://127.0.0.1:{port}")
    print("Press Ctrl+C to stop")

    try:
        app.run(host='127.0.0.1', port=port, debug=False)
    except OSError as e:
        if "Address already in use" in str(e):
            print(f"Port {port} is already in use. Set PORT to try another one.")
        else:
            raise
    except KeyboardInterrupt:
        print("\nServer stopped.")
