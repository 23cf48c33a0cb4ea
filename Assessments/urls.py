from rest_framework import routers
from django.urls import path, include
from .views import ChallengeViewSet

router = routers.DefaultRouter()
router.register(r'challenges', ChallengeViewSet, basename='challenges')

urlpatterns = [
    path('', include(router.urls)),
]
