from django.urls import path

from farming_magazine.realtime.api.views import RealtimeStatsView

app_name = "realtime"

urlpatterns = [
    path("stats/", RealtimeStatsView.as_view(), name="stats"),
]
