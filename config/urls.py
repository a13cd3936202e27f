from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static

urlpatterns = [
    path('admin/', admin.site.urls),

    # API endpoints
    path('api/accounts/', include('apps.accounts.urls')),

    path('api/doctors/', include('apps.doctors.urls')),
    path('api/patients/', include('apps.patients.urls')),

    path('api/appointments/', include('apps.appointments.urls')),
    path('api/queue/', include('apps.queues.urls')),

    path('api/billing/', include('apps.billing.urls')),
    path('api/payments/', include('apps.payments.urls')),

    path('api/notifications/', include('apps.notifications.urls')),
    path('api/sync/', include('apps.sync.urls')),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
    urlpatterns += static(settings.STATIC_URL, document_root=settings.STATIC_ROOT)
