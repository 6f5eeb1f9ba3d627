# apps/core/middleware.py

from .models import Member


class CurrentMemberMiddleware:
    """
    Attaches `request.member`: the Member whose login id is the
    signed-in account email, or None

    Must run after AuthenticationMiddleware.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        user = getattr(request, 'user', None)

        if user is not None and user.is_authenticated:
            request.member = Member.objects.for_login(user.email)
        else:
            request.member = None

        return self.get_response(request)
