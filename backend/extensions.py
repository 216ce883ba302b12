from flask_migrate import Migrate  # type: ignore[import]
from flask_sqlalchemy import SQLAlchemy  # type: ignore[import]

# Bound to the Flask app in app.py; repositories reach the engine via ``db.engine``.
db = SQLAlchemy()
migrate = Migrate()
