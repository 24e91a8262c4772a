"""URL configuration for Natours project.

The `urlpatterns` list routes URLs to views. API routes live under
`/api/v1/`; everything else is served as server-rendered pages. The Stripe
webhook sits outside the API prefix and reads the raw request body.
"""
from django.conf import settings  # type: ignore
from django.conf.urls.static import static  # type: ignore
from django.contrib import admin  # type: ignore
from django.urls import include, path, re_path  # type: ignore
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView  # type: ignore

from apps.bookings.views import webhook_checkout

# API versioning. v1 is our initial version; future versions can be added here.

urlpatterns = [
    path('admin/', admin.site.urls),
    # Payment provider callback (raw body, no auth)
    re_path(r'^webhook-checkout/?$', webhook_checkout, name='webhook-checkout'),
    # Application URLs
    path('api/v1/users/', include(('apps.users.urls', 'users'), namespace='users')),
    path('api/v1/tours/', include(('apps.tours.urls', 'tours'), namespace='tours')),
    path('api/v1/reviews/', include(('apps.reviews.urls', 'reviews'), namespace='reviews')),
    path('api/v1/bookings/', include(('apps.bookings.urls', 'bookings'), namespace='bookings')),
    # API docs
    path('api/v1/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/v1/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='docs'),
    # Pages
    path('', include(('apps.pages.urls', 'pages'), namespace='pages')),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)

handler404 = 'apps.core.views.not_found'
handler500 = 'apps.core.views.server_error'
