"""
URL configuration for backend project.
"""
from django.urls import path, include

urlpatterns = [
    # Storefront API routes
    path('api/', include('storefront.urls')),
]
