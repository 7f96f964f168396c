from django.urls import path
from .views import (
    cycle_contribution_list,
    cycle_list,
    member_list,
    pool_detail,
    pool_list,
)

urlpatterns = [
    path("pools/", pool_list, name="pool-list"),
    path("pools/<str:pool_id>/", pool_detail, name="pool-detail"),
    path("members/", member_list, name="member-list"),
    path("cycles/", cycle_list, name="cycle-list"),
    path("cycle-contributions/", cycle_contribution_list, name="cycle-contribution-list"),
]
