from django.urls import path

from .views import (
    MemberProfileView,
    PointHistoryView,
    PosWebhookView,
    RedeemRewardView,
    RewardListView,
)

app_name = "pointman"

urlpatterns = [
    path("webhook/pos/", PosWebhookView.as_view(), name="pos-webhook"),
    path("rewards/", RewardListView.as_view(), name="reward-list"),
    path("rewards/<str:reward_id>/redeem/", RedeemRewardView.as_view(), name="reward-redeem"),
    path("me/", MemberProfileView.as_view(), name="member-profile"),
    path("me/point-history/", PointHistoryView.as_view(), name="point-history"),
]
