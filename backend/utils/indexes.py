from pymongo import ASCENDING, DESCENDING
from pymongo.errors import OperationFailure

# IndexOptionsConflict / IndexKeySpecsConflict
INDEX_CONFLICT_CODES = {85, 86}

# (collection, key pattern, index name)
BUYER_API_INDEXES = [
    (
        "users",
        [("type", ASCENDING), ("approvalStatus", ASCENDING), ("updatedAt", DESCENDING)],
        "users_type_approval_updated_idx",
    ),
    ("audit_events", [("createdAt", DESCENDING)], "audit_events_created_at_idx"),
    (
        "audit_events",
        [("targetUid", ASCENDING), ("createdAt", DESCENDING)],
        "audit_events_target_created_at_idx",
    ),
]


async def ensure_indexes(db):
    for collection_name, keys, name in BUYER_API_INDEXES:
        collection = db[collection_name]
        try:
            await collection.create_index(keys, name=name)
        except OperationFailure as e:
            if e.code not in INDEX_CONFLICT_CODES:
                raise
            # same key pattern under an older name or options
            await collection.drop_index(keys)
            await collection.create_index(keys, name=name)
