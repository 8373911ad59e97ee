import pytest
from flask import Flask
from flask_sqlalchemy import SQLAlchemy

from sacrud import DB, SACRUD, create_resources


def _flask_app() -> Flask:
    app = Flask("sacrud_init_test")
    app.config.update(SQLALCHEMY_DATABASE_URI="sqlite://", TESTING=True)
    return app


def test_app_with_another_sqlalchemy_instance_is_rejected() -> None:
    app = _flask_app()
    SQLAlchemy(app)

    with pytest.raises(TypeError):
        SACRUD(app)


def test_app_db_must_be_the_shared_db() -> None:
    with pytest.raises(TypeError):
        SACRUD(_flask_app(), app_db=SQLAlchemy())


def test_app_already_using_the_shared_db() -> None:
    app = _flask_app()
    DB.init_app(app)

    sacrud_app = SACRUD(app, app_db=DB)

    assert sacrud_app.db is DB
    with app.app_context():
        DB.create_all()
        registry = create_resources()
        users = registry["users"]
        assert users.list({}) == []
        DB.drop_all()
