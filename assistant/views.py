import logging

from drf_spectacular.utils import extend_schema, OpenApiParameter
from rest_framework import views, permissions
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from .conversation import Conversation
from .intents import reply_to, answer_faq
from .serializers import AssistantMessageSerializer

logger = logging.getLogger(__name__)


class AssistantView(views.APIView):
    """
    POST {message, conversationId?, context?}

    Replies with canned text, button options and (for searches) property
    recommendations. Pass the returned conversationId back to continue.
    """
    permission_classes = [permissions.AllowAny]

    @extend_schema(request=AssistantMessageSerializer)
    def post(self, request):
        serializer = AssistantMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        message = serializer.validated_data["message"]

        conversation = Conversation(serializer.validated_data.get("conversationId") or None)
        reply = reply_to(message)
        conversation.add("user", message)
        conversation.add("assistant", reply.response, intents=reply.intents)
        conversation.save()

        logger.info(
            "Assistant reply conversation=%s user_id=%s intents=%s recommendations=%s",
            conversation.id,
            getattr(request.user, "id", None),
            ",".join(reply.intents) or "-",
            len(reply.recommendations),
        )
        return Response({
            "response": reply.response,
            "conversationId": conversation.id,
            "options": reply.options,
            "propertyRecommendations": reply.recommendations,
            "suggestedActions": reply.suggested_actions,
            "preferences": reply.preferences,
            "turns": len(conversation.turns),
            "success": True,
        })


class FaqView(views.APIView):
    permission_classes = [permissions.AllowAny]

    @extend_schema(parameters=[OpenApiParameter("question", str, required=True)])
    def get(self, request):
        question = (request.query_params.get("question") or "").strip()
        if not question:
            raise ValidationError("Question parameter is required")
        return Response({"question": question, "answer": answer_faq(question), "success": True})
