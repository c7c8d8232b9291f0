"""
topic_initializer.py - Kafka Topic Auto-Creation Utility

PURPOSE:
    Creates the Kafka topics the services exchange events on, at service
    startup, with the configured partitioning and replication.

TOPICS CREATED:
    - product.created

CONFIGURATION:
    - Default partitions: 3 (events are keyed by SKU, so per-SKU order holds)
    - Default replication factor: 1 (override in multi-broker deployments)
    - Idempotent: Safe to call multiple times

RETRY LOGIC:
    - Retries topic creation while Kafka brokers are not ready
    - 10 attempts with 3-second delays
"""

import logging  # For status and error logging
import time  # For retry delays
from typing import List, Optional  # Type hints

from confluent_kafka.admin import AdminClient, NewTopic  # Kafka admin operations

from common.events import ALL_TOPICS

logger = logging.getLogger(__name__)


def create_topics(
    bootstrap_servers: str,
    num_partitions: int = 3,
    replication_factor: int = 1,
    topics: Optional[List[str]] = None,
    admin_client: Optional[AdminClient] = None,
    max_retries: int = 10,
    retry_delay: float = 3,
) -> None:
    """
    Create Kafka topics with specified partitions and replication factor.

    Args:
        bootstrap_servers: Comma-separated Kafka broker addresses
        num_partitions: Number of partitions per topic
        replication_factor: Number of replicas per partition
        topics: Topic names to create (defaults to ALL_TOPICS)
        admin_client: Pre-built admin client (mainly for tests)
    """
    if admin_client is None:
        admin_client = AdminClient({"bootstrap.servers": bootstrap_servers})

    topics_to_create: List[NewTopic] = [
        NewTopic(topic, num_partitions=num_partitions, replication_factor=replication_factor)
        for topic in (topics or ALL_TOPICS)
    ]

    for attempt in range(max_retries):
        try:
            logger.info(f"Creating topics (attempt {attempt + 1}/{max_retries})...")
            fs = admin_client.create_topics(topics_to_create, validate_only=False)

            for topic, future in fs.items():
                try:
                    future.result(timeout=10)
                    logger.info(f"Topic '{topic}' created successfully")
                except Exception as e:
                    if "already exists" in str(e) or "TOPIC_ALREADY_EXISTS" in str(e):
                        logger.info(f"Topic '{topic}' already exists")
                    else:
                        raise

            logger.info("All topics processed successfully")
            return

        except Exception as e:
            if attempt < max_retries - 1:
                logger.warning(f"Failed to create topics (attempt {attempt + 1}): {e}. Retrying in {retry_delay}s...")
                time.sleep(retry_delay)
            else:
                logger.error(f"Failed to create topics after {max_retries} attempts: {e}")
                raise
