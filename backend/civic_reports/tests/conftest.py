import pytest

from sqlalchemy.pool import StaticPool
from flask_jwt_extended import create_access_token

from civic_reports import create_app
from civic_reports.config import TestConfig as BaseTestConfig
from civic_reports.extensions import db

# Import models so SQLAlchemy registers the mappers/tables
import civic_reports.models  # noqa: F401
from civic_reports.models import Category, Officer, Subcategory, User
from civic_reports.services import lifecycle_service


class PytestConfig(BaseTestConfig):
	SQLALCHEMY_DATABASE_URI = "sqlite://"
	SQLALCHEMY_ENGINE_OPTIONS = {
		"connect_args": {"check_same_thread": False},
		"poolclass": StaticPool,
	}
	JWT_SECRET_KEY = "test-secret"
	CHANNEL_QUEUE_SIZE = 16
	CHANNEL_HEARTBEAT_SECONDS = 0.05


@pytest.fixture(scope="session")
def app():
	app = create_app(PytestConfig)
	with app.app_context():
		db.create_all()
		yield app
		db.session.remove()
		db.drop_all()


@pytest.fixture()
def client(app):
	return app.test_client()


@pytest.fixture()
def db_session(app):
	with app.app_context():
		yield db.session
		db.session.rollback()


@pytest.fixture()
def make_user(db_session):
	def _make_user(email: str, name: str = "Test User", role: str = "citizen"):
		u = User(name=name, email=email, role=role)
		db_session.add(u)
		db_session.commit()
		return u

	return _make_user


@pytest.fixture()
def make_token(app):
	def _make_token(user_id: int, role: str = "citizen") -> str:
		with app.app_context():
			return create_access_token(identity=str(user_id), additional_claims={"role": role})

	return _make_token


@pytest.fixture()
def auth_header(make_token):
	def _auth_header(user_id: int, role: str = "citizen") -> dict:
		token = make_token(user_id, role=role)
		return {"Authorization": f"Bearer {token}"}

	return _auth_header


@pytest.fixture()
def make_category(db_session):
	def _make_category(name: str = "Roads", type: str = "non_emergency"):
		existing = Category.query.filter_by(name=name).first()
		if existing is not None:
			return existing
		c = Category(name=name, type=type)
		db_session.add(c)
		db_session.commit()
		return c

	return _make_category


@pytest.fixture()
def make_subcategory(db_session):
	def _make_subcategory(category: Category, name: str = "Pothole"):
		existing = Subcategory.query.filter_by(category_id=category.id, name=name).first()
		if existing is not None:
			return existing
		s = Subcategory(name=name, category_id=category.id)
		db_session.add(s)
		db_session.commit()
		return s

	return _make_subcategory


@pytest.fixture()
def make_officer(db_session):
	def _make_officer(name: str = "Officer 42", department: str = "Public Works", contact: str | None = None):
		o = Officer(name=name, department=department, contact=contact)
		db_session.add(o)
		db_session.commit()
		return o

	return _make_officer


@pytest.fixture()
def make_report(make_category):
	def _make_report(reporter: User, title: str = "Pothole", category: Category | None = None, **extra):
		category = category or make_category()
		draft = {
			"title": title,
			"description": extra.pop("description", "Deep pothole on Main St"),
			"category_id": category.id,
		}
		draft.update(extra)
		return lifecycle_service.submit(draft, reporter.id)

	return _make_report
