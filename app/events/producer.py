import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from aiokafka import AIOKafkaProducer
from aiokafka.errors import KafkaConnectionError, KafkaTimeoutError

logger = logging.getLogger(__name__)


class OrderEventProducer:
    """Producer для отправки событий заказов"""

    def __init__(self, bootstrap_servers: str, service_name: str = "marketplace-service"):
        self.producer: Optional[AIOKafkaProducer] = None
        self.bootstrap_servers = bootstrap_servers
        self.service_name = service_name

    async def start(self):
        """Запуск Kafka продюсера"""
        try:
            self.producer = AIOKafkaProducer(
                bootstrap_servers=self.bootstrap_servers,
                value_serializer=lambda v: json.dumps(v).encode('utf-8'),
                key_serializer=lambda k: k.encode('utf-8') if k else None,
                retry_backoff_ms=1000,
                request_timeout_ms=30000,
                compression_type="gzip",
                acks='all',
                enable_idempotence=True
            )
            await self.producer.start()
            logger.info("✅ Order event producer started successfully")
        except Exception as e:
            self.producer = None
            logger.error(f"❌ Failed to start order event producer: {e}")
            raise

    async def stop(self):
        """Остановка Kafka продюсера"""
        if self.producer:
            try:
                await self.producer.stop()
                logger.info("✅ Order event producer stopped")
            except Exception as e:
                logger.error(f"❌ Error stopping order event producer: {e}")
            finally:
                self.producer = None

    def build_event(self, event_type: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Стандартный конверт события"""
        return {
            "event_id": str(uuid.uuid4()),
            "event_type": event_type,
            "event_timestamp": datetime.now(timezone.utc).isoformat(),
            "producer_service": self.service_name,
            "payload": payload
        }

    async def publish_event(
            self,
            topic: str,
            event_type: str,
            payload: Dict[str, Any],
            key: Optional[str] = None
    ) -> bool:
        """
        Публикация события в Kafka

        Args:
            topic: Название топика
            event_type: Тип события
            payload: Данные события
            key: Ключ для партиционирования (опционально)

        Returns:
            bool: True если успешно отправлено
        """
        if not self.producer:
            logger.error("Order event producer not started")
            return False

        try:
            event = self.build_event(event_type, payload)

            # send_and_wait ждет подтверждения брокера
            record_metadata = await self.producer.send_and_wait(topic, value=event, key=key)

            logger.info(
                f"✅ Event published: {event_type} to {topic} "
                f"(partition: {record_metadata.partition}, offset: {record_metadata.offset})"
            )
            return True

        except KafkaTimeoutError:
            logger.error(f"❌ Timeout publishing event {event_type} to {topic}")
            return False
        except KafkaConnectionError:
            logger.error(f"❌ Connection error publishing event {event_type} to {topic}")
            return False
        except Exception as e:
            logger.error(f"❌ Error publishing event {event_type} to {topic}: {e}")
            return False

    async def publish_order_created(self, order_data: Dict[str, Any]) -> bool:
        """Событие создания заказа"""
        return await self.publish_event(
            topic="order.created",
            event_type="order_created",
            payload=order_data,
            key=str(order_data.get("order_id"))
        )
