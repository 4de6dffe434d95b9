# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
MongoDB service layer with connection pooling and document helpers.
"""

import os
import logging
from typing import List, Dict, Optional, Any, Tuple
from pymongo import MongoClient, ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import (
    ConnectionFailure, 
    ServerSelectionTimeoutError,
    DuplicateKeyError
)
from bson import ObjectId
from bson.errors import InvalidId

logger = logging.getLogger(__name__)

SCHEDULES_COLLECTION = "custody_schedules"
REQUESTS_COLLECTION = "schedule_requests"
PROFILES_COLLECTION = "profiles"


def to_object_id(doc_id: Any) -> ObjectId:
    """Validate and convert string ID to ObjectId."""
    if isinstance(doc_id, ObjectId):
        return doc_id
    try:
        return ObjectId(doc_id)
    except (InvalidId, TypeError):
        raise ValueError(f"Invalid ObjectId format: {doc_id}")


def externalize_id(document: Optional[Dict]) -> Optional[Dict]:
    """Replace ``_id`` with a string ``id`` for JSON serialization."""
    if document is not None and "_id" in document:
        document["id"] = str(document.pop("_id"))
    return document


class MongoDBService:
    """MongoDB service with connection pooling."""
    
    def __init__(self, connection_string: str = None, database_name: str = None):
        """Initialize MongoDB service with connection pooling."""
        self.connection_string = connection_string or os.getenv(
            'MONGODB_URI', 
            'mongodb://localhost:27017/coparent_dev'
        )
        self.database_name = database_name or os.getenv('MONGODB_DATABASE', 'coparent_dev')
        self._client: Optional[MongoClient] = None
        self._database: Optional[Database] = None
        
        # Connection pool settings
        self.max_pool_size = int(os.getenv('MONGODB_MAX_POOL_SIZE', '10'))
        self.min_pool_size = int(os.getenv('MONGODB_MIN_POOL_SIZE', '1'))
        self.max_idle_time_ms = int(os.getenv('MONGODB_MAX_IDLE_TIME_MS', '30000'))
        self.server_selection_timeout_ms = int(os.getenv('MONGODB_SERVER_SELECTION_TIMEOUT_MS', '5000'))
        
        logger.info(f"MongoDB service initialized for database: {self.database_name}")
    
    @property
    def client(self) -> MongoClient:
        """Get MongoDB client with connection pooling."""
        if self._client is None:
            try:
                self._client = MongoClient(
                    self.connection_string,
                    maxPoolSize=self.max_pool_size,
                    minPoolSize=self.min_pool_size,
                    maxIdleTimeMS=self.max_idle_time_ms,
                    serverSelectionTimeoutMS=self.server_selection_timeout_ms,
                    retryWrites=True,
                    retryReads=True
                )
                # Test connection
                self._client.admin.command('ping')
                logger.info("MongoDB connection established successfully")
            except (ConnectionFailure, ServerSelectionTimeoutError) as e:
                logger.error(f"Failed to connect to MongoDB: {e}")
                self._client = None
                raise
        
        return self._client
    
    @property
    def database(self) -> Database:
        """Get MongoDB database."""
        if self._database is None:
            self._database = self.client[self.database_name]
        return self._database
    
    def get_collection(self, collection_name: str) -> Collection:
        """Get MongoDB collection."""
        return self.database[collection_name]
    
    def close_connection(self) -> None:
        """Close MongoDB connection."""
        if self._client:
            self._client.close()
            self._client = None
            self._database = None
            logger.info("MongoDB connection closed")
    
    def health_check(self) -> Dict[str, Any]:
        """Check MongoDB connection health."""
        try:
            # Ping the database
            result = self.client.admin.command('ping')
            
            # Get server info
            server_info = self.client.server_info()
            
            return {
                'status': 'healthy',
                'ping': result.get('ok') == 1,
                'version': server_info.get('version'),
                'database': self.database_name,
                'connection_pool_size': self.max_pool_size
            }
        except Exception as e:
            logger.error(f"MongoDB health check failed: {e}")
            return {
                'status': 'unhealthy',
                'error': str(e),
                'database': self.database_name
            }
    
    # CRUD Operations
    
    def insert(self, collection: str, document: Dict) -> str:
        """Insert a new document and return its id."""
        try:
            # Ensure document has an ID
            if "_id" not in document:
                document["_id"] = ObjectId()
            
            collection_obj = self.get_collection(collection)
            result = collection_obj.insert_one(document)
            
            logger.info(f"Created document in {collection}: {result.inserted_id}")
            return str(result.inserted_id)
            
        except DuplicateKeyError as e:
            logger.error(f"Duplicate key error in {collection}: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed to create document in {collection}: {e}")
            raise
    
    def find_one(self, collection: str, query: Dict, 
                 sort: Optional[List[Tuple[str, int]]] = None) -> Optional[Dict]:
        """Find a single document, newest first when ``sort`` is given."""
        try:
            collection_obj = self.get_collection(collection)
            document = collection_obj.find_one(query, sort=sort)
            
            if document:
                logger.debug(f"Found document {document.get('_id')} in {collection}")
            else:
                logger.debug(f"No document in {collection} matched {query}")
            
            return externalize_id(document)
            
        except Exception as e:
            logger.error(f"Failed to find document in {collection}: {e}")
            raise
    
    def find_many(self, collection: str, query: Dict, sort_by: str = "created_at",
                  sort_order: int = DESCENDING, limit: int = 0) -> List[Dict]:
        """Find documents matching a query."""
        try:
            collection_obj = self.get_collection(collection)
            cursor = collection_obj.find(query).sort(sort_by, sort_order)
            if limit:
                cursor = cursor.limit(limit)
            
            documents = [externalize_id(doc) for doc in cursor]
            
            logger.debug(f"Found {len(documents)} documents in {collection}")
            return documents
            
        except Exception as e:
            logger.error(f"Failed to find documents in {collection}: {e}")
            raise
    
    def replace(self, collection: str, doc_id: Any, document: Dict) -> bool:
        """Replace a document wholesale by id."""
        try:
            collection_obj = self.get_collection(collection)
            result = collection_obj.replace_one({"_id": doc_id}, document)
            
            if result.matched_count > 0:
                logger.info(f"Replaced document {doc_id} in {collection}")
                return True
            
            logger.warning(f"No document replaced for {doc_id} in {collection}")
            return False
            
        except Exception as e:
            logger.error(f"Failed to replace document {doc_id} in {collection}: {e}")
            raise
    
    def find_one_and_update(self, collection: str, query: Dict, updates: Dict) -> Optional[Dict]:
        """
        Atomically apply ``$set`` updates to the first document matching ``query``.
        
        The query doubles as the precondition: when no document matches,
        nothing is written and None is returned.
        
        Returns:
            The updated document, or None when the precondition failed
        """
        try:
            collection_obj = self.get_collection(collection)
            document = collection_obj.find_one_and_update(
                query,
                {"$set": updates},
                return_document=ReturnDocument.AFTER
            )
            
            if document is None:
                logger.debug(f"Conditional update matched nothing in {collection}")
            else:
                logger.info(f"Updated document {document.get('_id')} in {collection}")
            
            return externalize_id(document)
            
        except Exception as e:
            logger.error(f"Failed to update document in {collection}: {e}")
            raise
    
    # Index Management
    
    def create_indexes(self) -> None:
        """Create performance indexes for all collections."""
        try:
            logger.info("Creating MongoDB indexes...")
            
            # Schedules: load picks the newest schedule where the profile is either parent
            schedules = self.get_collection(SCHEDULES_COLLECTION)
            schedules.create_index([("parent_a_id", ASCENDING), ("created_at", DESCENDING)])
            schedules.create_index([("parent_b_id", ASCENDING), ("created_at", DESCENDING)])
            
            # Schedule requests
            requests = self.get_collection(REQUESTS_COLLECTION)
            requests.create_index([("recipient_id", ASCENDING), ("status", ASCENDING), ("created_at", DESCENDING)])
            requests.create_index([("requester_id", ASCENDING), ("created_at", DESCENDING)])
            
            # Profiles
            profiles = self.get_collection(PROFILES_COLLECTION)
            profiles.create_index("co_parent_id")
            
            logger.info("MongoDB indexes created successfully")
            
        except Exception as e:
            logger.error(f"Failed to create MongoDB indexes: {e}")
            raise


# Singleton instance for application use
_mongodb_service: Optional[MongoDBService] = None


def get_mongodb_service() -> MongoDBService:
    """Get singleton MongoDB service instance."""
    global _mongodb_service
    if _mongodb_service is None:
        _mongodb_service = MongoDBService()
    return _mongodb_service


def close_mongodb_connection() -> None:
    """Close MongoDB connection (for cleanup)."""
    global _mongodb_service
    if _mongodb_service:
        _mongodb_service.close_connection()
