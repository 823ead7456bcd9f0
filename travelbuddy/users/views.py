"""Browser-facing end of the federated (Google) login.

allauth runs the OAuth dance and the account linking; once it has logged the
user into a session, ``LOGIN_REDIRECT_URL`` points here and the session is
traded for a bearer token handed to the SPA.
"""

import logging
from urllib.parse import urlencode

from django.conf import settings
from django.contrib.auth import logout
from django.contrib.auth.decorators import login_required
from django.shortcuts import redirect
from django.urls import reverse
from django.views.decorators.http import require_GET

from travelbuddy.users.tokens import issue_token

logger = logging.getLogger(__name__)


@require_GET
def google_login_redirect(request):
    return redirect(reverse("google_login"))


@require_GET
@login_required
def social_login_complete(request):
    user = request.user
    token = issue_token(user)
    # The SPA authenticates with the bearer token only
    logout(request)
    logger.info("Federated login completed for user %s", user.pk)
    query = urlencode({"token": token})
    return redirect(f"{settings.FRONTEND_URL.rstrip('/')}/auth-success?{query}")
