import os, sys, pytest
# Ensure the backend directory is on path so 'matcha_trade' and 'tests' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from matcha_trade import create_app, get_db
from matcha_trade.models.authz import Base
# Import all model modules to ensure tables are registered before create_all
import matcha_trade.models.audit  # noqa: F401
import matcha_trade.models.security  # noqa: F401
import matcha_trade.models.supplier  # noqa: F401
import matcha_trade.models.client  # noqa: F401
import matcha_trade.models.sku  # noqa: F401
import matcha_trade.models.pricing  # noqa: F401
import matcha_trade.models.relation  # noqa: F401
import matcha_trade.models.inventory  # noqa: F401
import matcha_trade.models.client_order  # noqa: F401
import matcha_trade.models.supplier_order  # noqa: F401
import matcha_trade.models.forecast  # noqa: F401
import matcha_trade.models.notification  # noqa: F401
import matcha_trade.models.setting  # noqa: F401
import matcha_trade.models.version  # noqa: F401


@pytest.fixture(scope='session', autouse=True)
def app_instance():
    os.environ['DATABASE_URL'] = 'sqlite+pysqlite:///:memory:'
    app = create_app({'TESTING': True, 'DATABASE_URL': 'sqlite+pysqlite:///:memory:', 'LOG_LEVEL': 'WARNING'})
    # After app and blueprints are registered, ensure all tables exist
    with app.app_context():
        engine = get_db().get_bind()
        Base.metadata.create_all(engine)
    yield app


@pytest.fixture()
def app_context(app_instance):
    with app_instance.app_context():
        yield app_instance


@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()
