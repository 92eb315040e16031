from lexcorpus.api.routes.tools import tools_bp
from lexcorpus.api.routes.monitoring import monitoring_bp

__all__ = ['tools_bp', 'monitoring_bp']
