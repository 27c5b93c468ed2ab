# module formapro.app
from formapro.app_setup.factory import create_app

app = create_app()
