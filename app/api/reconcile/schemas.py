# app/api/reconcile/schemas.py
from marshmallow import Schema, fields


class PostReconcileResponseSchema(Schema):
    """Response of POST /api/admin/posts/{post_id}/reconcile."""
    post_id = fields.Str(required=True, data_key='postId')
    likes_count = fields.Int(required=True, data_key='likesCount')
    comments_count = fields.Int(required=True, data_key='commentsCount')
    # Only the comments whose stored repliesCount was wrong.
    corrected_replies = fields.Dict(keys=fields.Str(), values=fields.Int(), data_key='correctedReplies')
    reconciled_at = fields.DateTime(required=True, data_key='reconciledAt')


class UserReconcileResponseSchema(Schema):
    """Response of POST /api/admin/users/{user_id}/reconcile."""
    user_id = fields.Str(required=True, data_key='userId')
    posts_count = fields.Int(required=True, data_key='postsCount')
    reconciled_at = fields.DateTime(required=True, data_key='reconciledAt')
