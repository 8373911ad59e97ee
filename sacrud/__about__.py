__version__ = "1.0.0"
__description__ = "sacrud : SqlAlchemy CRUD resource actions"
