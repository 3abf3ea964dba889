# Overview: Flask extension instances shared by models, services and the CLI.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

# Single query gateway for the whole app: every service goes through db.session.
db = SQLAlchemy()
migrate = Migrate()
