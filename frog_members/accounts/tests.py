from datetime import datetime, timezone as dt_timezone
from unittest.mock import patch

import stripe
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework.test import APITestCase

from accounts.models import AdminRole, CustomUser, Profile
from accounts.profile_service import ensure_profile, is_portal_admin
from accounts.stripe_service import StripeService
from accounts.tasks import sync_subscription_statuses

STRIPE_SETTINGS = {
    'STRIPE_SECRET_KEY': 'sk_test_dummy',
    'STRIPE_PRICE_ID': 'price_membership',
    'STRIPE_WEBHOOK_SECRET': 'whsec_dummy',
    'APP_URL': 'https://members.example.com',
}


class EnsureProfileTests(TestCase):
    def setUp(self):
        self.user = CustomUser.objects.create_user(email='frog@example.com', password='StrongPass123')

    def test_user_creation_creates_profile(self):
        self.assertTrue(Profile.objects.filter(user=self.user).exists())
        self.assertEqual(self.user.profile.email, 'frog@example.com')

    def test_ensure_profile_twice_keeps_single_row(self):
        first, _ = ensure_profile(self.user)
        second, created = ensure_profile(self.user)

        self.assertFalse(created)
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(Profile.objects.filter(user=self.user).count(), 1)

    def test_missing_profile_is_recreated_once(self):
        Profile.objects.filter(user=self.user).delete()
        user = CustomUser.objects.get(pk=self.user.pk)

        with patch('accounts.profile_service.slack_service.notify_new_user') as notify:
            profile, created = ensure_profile(user)
            ensure_profile(user)

        self.assertTrue(created)
        self.assertEqual(profile.email, 'frog@example.com')
        self.assertEqual(Profile.objects.filter(user=user).count(), 1)
        notify.assert_called_once()


class AdminCheckTests(TestCase):
    def test_admin_sources(self):
        plain = CustomUser.objects.create_user(email='plain@example.com', password='StrongPass123')
        staff = CustomUser.objects.create_user(email='staff@example.com', password='StrongPass123')
        AdminRole.objects.create(user=staff)

        self.assertFalse(is_portal_admin(plain))
        self.assertTrue(is_portal_admin(staff))

        with self.settings(ADMIN_USER_IDS=[str(plain.pk)]):
            self.assertTrue(is_portal_admin(plain))


class AuthFlowTests(APITestCase):
    def test_register_returns_tokens_and_onboarding_redirect(self):
        response = self.client.post(reverse('accounts:register'), {
            'email': 'New.Member@Example.com',
            'password': 'StrongPass123',
        }, format='json')

        self.assertEqual(response.status_code, 201)
        self.assertIn('access', response.data)
        self.assertEqual(response.data['redirect'], '/onboarding')
        user = CustomUser.objects.get(email='new.member@example.com')
        self.assertEqual(Profile.objects.filter(user=user).count(), 1)

    def test_register_rejects_duplicate_email(self):
        CustomUser.objects.create_user(email='taken@example.com', password='StrongPass123')
        response = self.client.post(reverse('accounts:register'), {
            'email': 'taken@example.com',
            'password': 'StrongPass123',
        }, format='json')
        self.assertEqual(response.status_code, 400)

    def test_session_bootstrap_redirects_by_onboarding_state(self):
        user = CustomUser.objects.create_user(email='member@example.com', password='StrongPass123')
        self.client.force_authenticate(user=user)

        response = self.client.post(reverse('accounts:session'))
        self.assertEqual(response.data['redirect'], '/onboarding')
        self.assertFalse(response.data['profile_created'])

        Profile.objects.filter(user=user).update(onboarding_completed=True)
        response = self.client.post(reverse('accounts:session'))
        self.assertEqual(response.data['redirect'], '/dashboard')

    def test_onboarding_completes_profile(self):
        user = CustomUser.objects.create_user(email='member@example.com', password='StrongPass123')
        self.client.force_authenticate(user=user)

        with patch('accounts.profile_service.slack_service.notify_onboarding_completed') as notify:
            response = self.client.post(reverse('accounts:onboarding'), {
                'first_name': 'Kaeru',
                'last_name': 'Yamada',
                'migration_goal': 'overseas_employment',
                'future_occupation': 'Chef',
                'goal_location': 'Vancouver',
            }, format='json')

        self.assertEqual(response.status_code, 200)
        profile = Profile.objects.get(user=user)
        self.assertTrue(profile.onboarding_completed)
        self.assertEqual(profile.future_occupation, 'Chef')
        notify.assert_called_once()

    def test_me_cannot_change_membership_flags(self):
        user = CustomUser.objects.create_user(email='member@example.com', password='StrongPass123')
        self.client.force_authenticate(user=user)

        response = self.client.patch(reverse('accounts:me'), {'first_name': 'Kero', 'is_member': True}, format='json')

        self.assertEqual(response.status_code, 200)
        profile = Profile.objects.get(user=user)
        self.assertEqual(profile.first_name, 'Kero')
        self.assertFalse(profile.is_member)

    def test_admin_profiles_requires_admin(self):
        user = CustomUser.objects.create_user(email='member@example.com', password='StrongPass123')
        self.client.force_authenticate(user=user)
        self.assertEqual(self.client.get(reverse('accounts:admin_profiles')).status_code, 403)

        AdminRole.objects.create(user=user)
        response = self.client.get(reverse('accounts:admin_profiles'), {'q': 'member'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 1)


@override_settings(**STRIPE_SETTINGS)
class SubscriptionViewTests(APITestCase):
    def setUp(self):
        self.user = CustomUser.objects.create_user(email='member@example.com', password='StrongPass123')
        self.profile = self.user.profile
        self.client.force_authenticate(user=self.user)

    @patch('accounts.stripe_service.stripe.checkout.Session.create')
    def test_checkout_creates_subscription_session(self, mock_create):
        mock_create.return_value = {'id': 'cs_test_1', 'url': 'https://checkout.stripe.com/c/cs_test_1'}

        response = self.client.post(reverse('accounts:subscription_checkout'))

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data, {'sessionId': 'cs_test_1', 'url': 'https://checkout.stripe.com/c/cs_test_1'})
        kwargs = mock_create.call_args.kwargs
        self.assertEqual(kwargs['mode'], 'subscription')
        self.assertEqual(kwargs['line_items'], [{'price': 'price_membership', 'quantity': 1}])
        self.assertEqual(kwargs['success_url'], 'https://members.example.com/learning/success')
        self.assertEqual(kwargs['cancel_url'], 'https://members.example.com/learning')
        self.assertEqual(kwargs['client_reference_id'], str(self.user.pk))
        self.assertEqual(kwargs['metadata'], {'userId': str(self.user.pk)})

    @patch('accounts.stripe_service.stripe.checkout.Session.create')
    def test_checkout_rejects_existing_member(self, mock_create):
        Profile.objects.filter(pk=self.profile.pk).update(is_member=True)

        response = self.client.post(reverse('accounts:subscription_checkout'))

        self.assertEqual(response.status_code, 400)
        mock_create.assert_not_called()

    def test_portal_requires_customer(self):
        response = self.client.post(reverse('accounts:subscription_portal'))
        self.assertEqual(response.status_code, 404)

    @patch('accounts.stripe_service.stripe.billing_portal.Session.create')
    def test_portal_without_configuration_maps_to_400(self, mock_create):
        Profile.objects.filter(pk=self.profile.pk).update(stripe_customer_id='cus_1')
        mock_create.side_effect = stripe.InvalidRequestError(
            'No configuration provided and your test mode default configuration has not been created.',
            None,
        )

        response = self.client.post(reverse('accounts:subscription_portal'))

        self.assertEqual(response.status_code, 400)

    @patch('accounts.stripe_service.stripe.billing_portal.Session.create')
    def test_portal_returns_url(self, mock_create):
        Profile.objects.filter(pk=self.profile.pk).update(stripe_customer_id='cus_1')
        mock_create.return_value = {'url': 'https://billing.stripe.com/p/session_1'}

        response = self.client.post(reverse('accounts:subscription_portal'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['url'], 'https://billing.stripe.com/p/session_1')
        mock_create.assert_called_once_with(customer='cus_1', return_url='https://members.example.com/settings')

    def test_cancel_without_subscription(self):
        response = self.client.post(reverse('accounts:subscription_cancel'))
        self.assertEqual(response.status_code, 400)

    @patch('accounts.stripe_service.stripe.Subscription.cancel')
    @patch('accounts.stripe_service.stripe.Subscription.retrieve')
    def test_cancel_clears_subscription_identifier(self, mock_retrieve, mock_cancel):
        Profile.objects.filter(pk=self.profile.pk).update(
            is_member=True,
            stripe_customer_id='cus_1',
            stripe_subscription_id='sub_1',
            subscription_status='active',
        )
        mock_retrieve.return_value = {'id': 'sub_1', 'status': 'active'}

        response = self.client.post(reverse('accounts:subscription_cancel'))

        self.assertEqual(response.status_code, 200)
        mock_cancel.assert_called_once_with('sub_1')
        profile = Profile.objects.get(pk=self.profile.pk)
        self.assertFalse(profile.is_member)
        self.assertEqual(profile.subscription_status, 'canceled')
        self.assertEqual(profile.stripe_subscription_id, '')
        self.assertEqual(profile.stripe_customer_id, 'cus_1')

    @patch('accounts.stripe_service.stripe.Subscription.cancel')
    @patch('accounts.stripe_service.stripe.Subscription.retrieve')
    def test_cancel_missing_stripe_subscription_updates_profile(self, mock_retrieve, mock_cancel):
        Profile.objects.filter(pk=self.profile.pk).update(is_member=True, stripe_subscription_id='sub_gone')
        mock_retrieve.side_effect = stripe.InvalidRequestError('No such subscription', 'id', code='resource_missing')

        response = self.client.post(reverse('accounts:subscription_cancel'))

        self.assertEqual(response.status_code, 200)
        mock_cancel.assert_not_called()
        profile = Profile.objects.get(pk=self.profile.pk)
        self.assertFalse(profile.is_member)
        self.assertEqual(profile.stripe_subscription_id, '')


@override_settings(**STRIPE_SETTINGS)
class StripeWebhookTests(TestCase):
    def setUp(self):
        self.user = CustomUser.objects.create_user(email='member@example.com', password='StrongPass123')
        self.url = reverse('accounts:stripe_webhook')

    def _post_event(self, event):
        with patch('accounts.stripe_views.StripeService.construct_event', return_value=event):
            return self.client.post(self.url, data='{}', content_type='application/json', HTTP_STRIPE_SIGNATURE='t=1,v1=x')

    def test_invalid_signature_rejected(self):
        response = self.client.post(self.url, data='{}', content_type='application/json', HTTP_STRIPE_SIGNATURE='bad')
        self.assertEqual(response.status_code, 400)

    @patch('accounts.stripe_service.stripe.Subscription.retrieve')
    def test_checkout_completed_activates_membership(self, mock_retrieve):
        mock_retrieve.return_value = {'id': 'sub_1', 'status': 'active', 'current_period_end': 1767225600}

        response = self._post_event({
            'type': 'checkout.session.completed',
            'data': {'object': {
                'id': 'cs_1',
                'client_reference_id': str(self.user.pk),
                'customer': 'cus_1',
                'subscription': 'sub_1',
            }},
        })

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'received': True})
        profile = Profile.objects.get(user=self.user)
        self.assertTrue(profile.is_member)
        self.assertEqual(profile.stripe_customer_id, 'cus_1')
        self.assertEqual(profile.stripe_subscription_id, 'sub_1')
        self.assertEqual(profile.subscription_period_end, datetime(2026, 1, 1, tzinfo=dt_timezone.utc))

    def test_subscription_updated_cancel_at_period_end(self):
        Profile.objects.filter(user=self.user).update(is_member=True, stripe_subscription_id='sub_1', stripe_customer_id='cus_1')

        self._post_event({
            'type': 'customer.subscription.updated',
            'data': {'object': {
                'id': 'sub_1',
                'customer': 'cus_1',
                'status': 'active',
                'cancel_at_period_end': True,
                'items': {'data': [{'current_period_end': 1767225600}]},
            }},
        })

        profile = Profile.objects.get(user=self.user)
        self.assertTrue(profile.is_member)
        self.assertEqual(profile.subscription_status, 'canceling')
        self.assertIsNotNone(profile.subscription_period_end)

    def test_subscription_deleted_falls_back_to_customer(self):
        Profile.objects.filter(user=self.user).update(is_member=True, stripe_subscription_id='sub_old', stripe_customer_id='cus_1')

        self._post_event({
            'type': 'customer.subscription.deleted',
            'data': {'object': {'id': 'sub_other', 'customer': 'cus_1', 'status': 'canceled'}},
        })

        profile = Profile.objects.get(user=self.user)
        self.assertFalse(profile.is_member)
        self.assertEqual(profile.subscription_status, 'canceled')
        self.assertEqual(profile.stripe_subscription_id, '')

    def test_unknown_event_is_acknowledged(self):
        self.assertEqual(StripeService.handle_event({'type': 'invoice.paid', 'data': {'object': {}}}), 'ignored')


@override_settings(**STRIPE_SETTINGS)
class SubscriptionSyncTests(TestCase):
    def setUp(self):
        self.user = CustomUser.objects.create_user(email='member@example.com', password='StrongPass123')
        Profile.objects.filter(user=self.user).update(
            is_member=True,
            subscription_status='active',
            stripe_subscription_id='sub_1',
            stripe_customer_id='cus_1',
        )

    def profile(self):
        return Profile.objects.get(user=self.user)

    @patch('accounts.stripe_service.stripe.Subscription.retrieve')
    def test_sync_profile_applies_unpaid(self, mock_retrieve):
        mock_retrieve.return_value = {'id': 'sub_1', 'customer': 'cus_1', 'status': 'unpaid', 'current_period_end': 1767225600}

        StripeService.sync_profile(self.profile())

        profile = self.profile()
        self.assertFalse(profile.is_member)
        self.assertEqual(profile.subscription_status, 'unpaid')
        mock_retrieve.assert_called_once_with('sub_1')

    @patch('accounts.stripe_service.stripe.Subscription.retrieve')
    def test_sync_profile_missing_subscription_cancels(self, mock_retrieve):
        mock_retrieve.side_effect = stripe.InvalidRequestError('No such subscription', 'id', code='resource_missing')

        StripeService.sync_profile(self.profile())

        profile = self.profile()
        self.assertFalse(profile.is_member)
        self.assertEqual(profile.subscription_status, 'canceled')
        self.assertEqual(profile.stripe_subscription_id, '')
        self.assertEqual(profile.stripe_customer_id, 'cus_1')

    @patch('accounts.stripe_service.stripe.Subscription.retrieve')
    def test_sync_profile_other_stripe_errors_propagate(self, mock_retrieve):
        mock_retrieve.side_effect = stripe.InvalidRequestError('Bad request', 'id', code='parameter_invalid')

        with self.assertRaises(stripe.InvalidRequestError):
            StripeService.sync_profile(self.profile())
        self.assertTrue(self.profile().is_member)

    @patch('accounts.stripe_service.stripe.Subscription.retrieve')
    def test_task_counts_checked_and_failed(self, mock_retrieve):
        other = CustomUser.objects.create_user(email='other@example.com', password='StrongPass123')
        Profile.objects.filter(user=other).update(is_member=True, stripe_subscription_id='sub_2')
        CustomUser.objects.create_user(email='free@example.com', password='StrongPass123')

        def retrieve(subscription_id):
            if subscription_id == 'sub_2':
                raise stripe.APIConnectionError('network down')
            return {'id': 'sub_1', 'customer': 'cus_1', 'status': 'canceled'}

        mock_retrieve.side_effect = retrieve

        result = sync_subscription_statuses()

        self.assertEqual(result['checked'], 2)
        self.assertEqual(result['failed'], 1)
        self.assertFalse(self.profile().is_member)
        self.assertTrue(Profile.objects.get(user=other).is_member)

    @override_settings(STRIPE_SECRET_KEY='')
    @patch.dict('os.environ', {'STRIPE_SECRET_KEY': ''})
    @patch('accounts.stripe_service.stripe.Subscription.retrieve')
    def test_task_skips_without_configuration(self, mock_retrieve):
        result = sync_subscription_statuses()

        self.assertTrue(result['skipped'])
        mock_retrieve.assert_not_called()
        self.assertTrue(self.profile().is_member)
