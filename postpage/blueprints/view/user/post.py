from __future__ import annotations

import structlog
from flask import abort, current_app, jsonify, make_response, redirect, render_template, request, session, url_for
from flask_wtf.csrf import CSRFError

from postpage.extensions import cache, limiter
from postpage.forms.comments import CommentForm
from postpage.services.comments import (
    CommentFormController,
    FormState,
    SubmissionInFlight,
    inflight_guard,
)
from postpage.services.pages import get_image_urls, get_moderation_client, get_page_cache, get_renderer
from postpage.services.static_generation import NotFound, StaticProps

from postpage.blueprints.blog import bp

log = structlog.get_logger(__name__)

SUBMITTED_SESSION_KEY = "submitted_comments"
EXPIRED_FORM_NOTICE = "Your session expired. Please submit your comment again."


def _load_or_404(slug: str) -> StaticProps:
    props = get_page_cache().get(slug)
    if isinstance(props, NotFound):
        abort(404)
    return props


def _is_submitted(post_id: str) -> bool:
    return post_id in session.get(SUBMITTED_SESSION_KEY, [])


def _mark_submitted(post_id: str) -> None:
    submitted = list(session.get(SUBMITTED_SESSION_KEY, []))
    if post_id not in submitted:
        submitted.append(post_id)
    session[SUBMITTED_SESSION_KEY] = submitted


def _render_post(props: StaticProps, form: CommentForm | None, submitted: bool, notice: str | None = None):
    post = props.post
    image_urls = get_image_urls()
    return render_template(
        "post.html",
        post=post,
        body_html=get_renderer().render(post.body),
        hero_url=image_urls.url_for_image(post.main_image),
        author_image_url=image_urls.url_for_image(post.author.image) if post.author else None,
        comments=post.comments,
        form=form,
        submitted=submitted,
        notice=notice,
    )


@bp.get("/post/<slug>", endpoint="post")
@limiter.limit("120 per minute")
def post_detail(slug: str):
    if request.args.get("format") == "json":
        props = get_page_cache().get(slug)
        if isinstance(props, NotFound):
            return jsonify({"error": "not_found"}), 404
        resp = jsonify({"status": "ok", "page": "post", **props.to_json()})
        resp.headers["Cache-Control"] = f"public, s-maxage={props.revalidate}, stale-while-revalidate"
        return resp

    props = _load_or_404(slug)
    submitted = _is_submitted(props.post.id)
    form = None if submitted else CommentForm(post_id=props.post.id)
    return _render_post(props, form, submitted)


@bp.post("/post/<slug>")
@limiter.limit("10 per minute")
def submit_comment(slug: str):
    props = _load_or_404(slug)
    post = props.post
    if _is_submitted(post.id):
        return redirect(url_for("blog.post", slug=slug))

    form = CommentForm()
    # The comment always belongs to the post being viewed
    form.post_id.data = post.id

    controller = CommentFormController(get_moderation_client())
    timeout = int(current_app.config.get("COMMENT_TIMEOUT", 10))
    try:
        with inflight_guard(cache, post.id, form.email.data or "", timeout):
            state = controller.submit(form)
    except SubmissionInFlight:
        log.info("comment_submission_in_flight", post_id=post.id)
        state = controller.state

    if state is FormState.SUBMITTED:
        _mark_submitted(post.id)
        return redirect(url_for("blog.post", slug=slug))

    return make_response(_render_post(props, form, submitted=False), 200)


@bp.errorhandler(CSRFError)
def comment_token_rejected(e: CSRFError):
    """Re-render the comment form with a fresh token, keeping what was typed."""
    props = get_page_cache().get((request.view_args or {}).get("slug") or "")
    if isinstance(props, NotFound):
        return jsonify({"error": "not_found", "message": "resource not found"}), 404

    log.info("comment_csrf_rejected", post_id=props.post.id, reason=e.description)
    form = CommentForm()
    form.post_id.data = props.post.id
    return make_response(_render_post(props, form, submitted=False, notice=EXPIRED_FORM_NOTICE), 400)
