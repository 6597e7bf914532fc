import os
import platform
import time
from datetime import datetime

import psutil
from flask import Blueprint, current_app, jsonify

bp = Blueprint('health', __name__)

VERSION = '1.0.0'


def format_uptime(seconds: float) -> str:
    seconds = int(seconds)
    return f"{seconds // 3600}h {(seconds % 3600) // 60}m {seconds % 60}s"


def format_memory(num_bytes: int) -> str:
    if num_bytes < 0:
        return '0 MB'
    return f"{round(num_bytes / 1024 / 1024)} MB"


@bp.route('/api/health')
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'healthy',
        'timestamp': datetime.utcnow().isoformat() + "Z",
        'uptime': time.time() - current_app.started_at,
        'connections': current_app.event_bus.get_connection_count(),
        'version': VERSION
    })


@bp.route('/api/health/detailed')
def detailed_health():
    uptime = time.time() - current_app.started_at
    process = psutil.Process()
    memory = process.memory_info()
    system = psutil.virtual_memory()

    return jsonify({
        'status': 'healthy',
        'timestamp': datetime.utcnow().isoformat() + "Z",
        'uptime': {
            'seconds': uptime,
            'formatted': format_uptime(uptime)
        },
        'memory': {
            'rss': format_memory(memory.rss),
            'vms': format_memory(memory.vms),
            'systemAvailable': format_memory(system.available),
            'systemPercent': system.percent
        },
        'environment': {
            'pythonVersion': platform.python_version(),
            'platform': platform.system().lower(),
            'arch': platform.machine(),
            'pid': os.getpid()
        },
        'eventBus': current_app.event_bus.get_metrics(),
        'pendingHumanMoves': len(current_app.matches.pending_matches()),
        'version': VERSION
    })
