# Overview: Flask extensions backing the SQL entity store (records table + its migrations).

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate()
