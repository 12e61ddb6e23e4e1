from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from . import views
from .stripe_views import stripe_webhook
from .subscriptions_views import (
    SubscriptionCancelView,
    SubscriptionCheckoutView,
    SubscriptionMeView,
    SubscriptionPortalView,
)

app_name = 'accounts'

urlpatterns = [
    # Authentication
    path('register/', views.RegisterView.as_view(), name='register'),
    path('token/', views.PortalTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('session/', views.SessionBootstrapView.as_view(), name='session'),

    # Profile
    path('me/', views.MeView.as_view(), name='me'),
    path('onboarding/', views.OnboardingView.as_view(), name='onboarding'),

    # Membership
    path('subscription/', SubscriptionMeView.as_view(), name='subscription'),
    path('subscription/checkout/', SubscriptionCheckoutView.as_view(), name='subscription_checkout'),
    path('subscription/portal/', SubscriptionPortalView.as_view(), name='subscription_portal'),
    path('subscription/cancel/', SubscriptionCancelView.as_view(), name='subscription_cancel'),
    path('stripe/webhook/', stripe_webhook, name='stripe_webhook'),

    # Back-office
    path('admin/check/', views.AdminCheckView.as_view(), name='admin_check'),
    path('admin/profiles/', views.AdminProfileListView.as_view(), name='admin_profiles'),
    path('admin/profiles/<int:pk>/', views.AdminProfileDetailView.as_view(), name='admin_profile_detail'),
]
