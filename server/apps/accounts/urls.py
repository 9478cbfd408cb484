from django.urls import path

from server.apps.accounts.views import LoginView, MeView, SignupView

app_name = 'accounts'

urlpatterns = [
    path('signup', SignupView.as_view(), name='signup'),
    path('login', LoginView.as_view(), name='login'),
    path('me', MeView.as_view(), name='me'),
]
