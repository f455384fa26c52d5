# module archive_store.app
from archive_store.app_setup.factory import create_app

# App globale
app = create_app()
