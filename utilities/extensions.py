from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect

login_manager = LoginManager()
login_manager.login_view = "auth.login"  # Redirect to login page if not logged in
login_manager.login_message = "Please sign in to continue."
login_manager.login_message_category = "error"

csrf = CSRFProtect()

# Only active when RATELIMIT_ENABLED is set in the config
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    strategy="fixed-window",
)
