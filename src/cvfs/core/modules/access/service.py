from cvfs.core.core import Service
from cvfs.core.modules.session.models import AuthToken
from cvfs.core.modules.user.models import User
from cvfs.errors import NotFoundError, SessionExpiredError


class AccessService(Service):
    async def ensure_authenticated(self, auth_token: AuthToken) -> User:
        """Ensure the token belongs to a live session of an existing user."""
        user_id = await self.core.services.session.authenticate(auth_token)
        try:
            return self.core.services.user.get_user(user_id)
        except NotFoundError:
            await self.core.services.session.invalidate_session(auth_token)
            raise SessionExpiredError from None
