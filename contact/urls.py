"""
Contact URL Configuration
"""
from django.urls import path
from .views import ContactFormSubmitView

app_name = 'contact'

# Public URLs (no auth required)
urlpatterns = [
    path('', ContactFormSubmitView.as_view(), name='submit'),
]
