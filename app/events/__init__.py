from .producer import OrderEventProducer

__all__ = ["OrderEventProducer"]
