from __future__ import annotations

from flask_wtf import FlaskForm
from wtforms import HiddenField, StringField, SubmitField, TextAreaField
from wtforms.fields import EmailField
from wtforms.validators import DataRequired, Length

INPUT_CLASS = "form-input mt-1 block w-full rounded border py-3 px-3 shadow outline-none ring-yellow-500 focus:ring"


class CommentForm(FlaskForm):
    """Leave a comment on a post. Submitted comments wait for moderation."""

    # Sent to the moderation endpoint as `_id`
    post_id = HiddenField()
    name = StringField(
        'Name',
        validators=[
            DataRequired(message='The name field is required'),
            Length(max=200),
        ],
        render_kw={'placeholder': 'ABC', 'class': INPUT_CLASS},
    )
    email = EmailField(
        'Email',
        validators=[
            DataRequired(message='The email field is required'),
            Length(max=320),
        ],
        render_kw={'placeholder': 'ABC', 'class': INPUT_CLASS},
    )
    comment = TextAreaField(
        'Comment',
        validators=[
            DataRequired(message='The comment field is required'),
            Length(max=5000),
        ],
        render_kw={'placeholder': 'ABC', 'rows': 8, 'class': INPUT_CLASS.replace('form-input', 'form-textarea')},
    )
    submit = SubmitField(
        'Submit',
        render_kw={'class': 'cursor-pointer rounded bg-yellow-500 py-2 px-4 font-bold text-white shadow hover:bg-yellow-400'},
    )
