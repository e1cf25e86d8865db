from django.urls import path

from .views import HallListCreateView, HallDetailView, HallSuggestionView, HallBookingsView

urlpatterns = [
    path("", HallListCreateView.as_view(), name="hall-list-create"),
    path("suggest/", HallSuggestionView.as_view(), name="hall-suggest"),
    path("<int:hall_id>/", HallDetailView.as_view(), name="hall-detail"),
    path("<int:hall_id>/bookings/", HallBookingsView.as_view(), name="hall-bookings"),
]
