# services/assessment-service/src/apps/core/api/views/token_views.py
"""
Token Views

ViewSet for issuing, redeeming and retiring test tokens.
"""

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.response import Response

from shared.common.permissions import IsAuthenticated, IsStaff

from ...services import TokenService
from ..serializers import (
    TestTokenSerializer,
    TokenIssueSerializer,
    TokenAssignSerializer,
    TokenRedeemSerializer,
    RedeemedTokenSerializer,
)
from .base import EngineViewSet


class TokenViewSet(EngineViewSet):
    """
    ViewSet for test tokens.

    Staff issue and manage tokens; any signed-in user may redeem one.
    """

    permission_classes = [IsStaff]
    action_permissions = {'redeem': [IsAuthenticated]}

    def get_service(self) -> TokenService:
        return TokenService(self.get_client())

    def create(self, request):
        """Issue a token for a published quiz."""
        serializer = TokenIssueSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        token = self.get_service().issue(self.get_context(), **serializer.validated_data)

        return Response(TestTokenSerializer(token).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'])
    def redeem(self, request):
        """Validate a token string and return the quiz it unlocks."""
        serializer = TokenRedeemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        redeemed = self.get_service().redeem(
            self.get_context(),
            serializer.validated_data['token'],
            student_name=serializer.validated_data.get('student_name'),
        )

        return Response(RedeemedTokenSerializer(redeemed).data)

    @action(detail=True, methods=['post'])
    def assign(self, request, pk=None):
        """Bind a token to a student."""
        serializer = TokenAssignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        token = self.get_service().assign(self.get_context(), pk, **serializer.validated_data)

        return Response(TestTokenSerializer(token).data)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """Withdraw an unused token."""
        token = self.get_service().cancel(self.get_context(), pk)

        return Response(TestTokenSerializer(token).data)
