# raktsetu/urls.py
from django.urls import path
from . import views

urlpatterns = [
    # auth
    path("auth/signup", views.signup, name="signup"),
    path("auth/login", views.login, name="login"),
    path("auth/logout", views.logout, name="logout"),

    # profile
    path("user/me", views.me, name="me"),
    path("user/donor-details", views.donor_details, name="donor_details"),

    # blood requests
    path("blood-requests/", views.blood_requests, name="blood_requests"),
    path("blood-requests/<int:pk>/", views.blood_request_detail, name="blood_request_detail"),
    path("blood-requests/<int:pk>/accept", views.blood_request_accept, name="blood_request_accept"),
    path("blood-requests/<int:pk>/arrived", views.blood_request_arrived, name="blood_request_arrived"),
    path("blood-requests/<int:pk>/cancel", views.blood_request_cancel, name="blood_request_cancel"),

    # donations & rewards
    path("donations/complete/<int:request_id>", views.donation_complete, name="donation_complete"),
    path("donations/rewards", views.donation_rewards, name="donation_rewards"),
    path("donations/history", views.donation_history, name="donation_history"),
    path("donations/history/export", views.donation_history_export, name="donation_history_export"),

    # notifications
    path("notifications/", views.notifications_list, name="notifications"),
    path("notifications/<int:pk>/read", views.notification_read, name="notification_read"),
]
