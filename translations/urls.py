"""
Translation URL Configuration
"""
from django.conf import settings
from django.urls import path, re_path

from . import views

app_name = 'translations'

language_pattern = '|'.join(settings.I18N_LANGUAGES)

urlpatterns = [
    path('assets/i18n/<str:lang>.json', views.dictionary_view, name='dictionary'),
    path('lang/', views.toggle_language, name='toggle'),
    path('lang/<str:lang>/', views.switch_language, name='switch'),
    path('', views.HomePageView.as_view(), name='home'),
    re_path(rf'^(?P<lang>{language_pattern})/$', views.HomePageView.as_view(), name='home-lang'),
]
