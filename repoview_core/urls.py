from django.urls import path, include

urlpatterns = [
    path('', include('browse_app.urls', namespace='browse_app')),
]
