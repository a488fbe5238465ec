from django.urls import path

from modules.realtime.consumers import OrdersConsumer

websocket_urlpatterns = [
    path("ws", OrdersConsumer.as_asgi()),
]
