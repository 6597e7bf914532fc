#!/usr/bin/env python3
"""
Entry point for the Match Arbitrator.

Usage:
    python run.py                    # Run the arbitrator service

Environment Variables:
    FLASK_ENV: development, production or testing (default: development)
    PORT: Port to run on (default: 4000)
    HOST: Interface to bind (default: 0.0.0.0)
"""
import os

from arbitrator.app import create_app


def run_arbitrator():
    """Run the arbitrator service."""
    app = create_app()
    port = int(os.getenv('PORT', 4000))
    host = os.getenv('HOST', '0.0.0.0')
    debug = os.getenv('FLASK_ENV', 'development') == 'development'

    print(f"Starting Arbitrator on port {port}...")
    # Matches, human moves and event streams are served concurrently
    app.run(host=host, port=port, debug=debug, threaded=True, use_reloader=False)


if __name__ == '__main__':
    run_arbitrator()
