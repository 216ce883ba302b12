from .activities_controller import activities_bp
from .health_controller import health_bp
from .stats_controller import stats_bp
from .void_controller import void_bp


def register_controllers(app):
    app.register_blueprint(health_bp)
    app.register_blueprint(void_bp)
    app.register_blueprint(stats_bp)
    app.register_blueprint(activities_bp)
