# Overview: Flask extension instances for database, migrations, and the record cache.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

from .cache import RecordCache

db = SQLAlchemy()
migrate = Migrate()
record_cache = RecordCache()
