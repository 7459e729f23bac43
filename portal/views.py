"""Public view functions for the testimony portal.

This module implements the landing page and the multi-step submission
wizard.  Each request loads the reference lists from the testimonies API,
restores the visitor's answers from the session, validates the posted step
with the matching form from :mod:`portal.forms` and either re-renders the
step with errors or redirects to the next one.  The final review step sends
everything to the API through :func:`portal.services.wizard.submit_wizard`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from django.conf import settings
from django.contrib import messages
from django.http import HttpRequest, HttpResponse
from django.shortcuts import redirect, render
from django.views.decorators.http import require_http_methods

from portal.forms import CategoryStepForm, ContentStepForm, DetailsStepForm, PersonalInfoStepForm
from portal.services.api_client import ApiClient, ApiFailure
from portal.services.pending_uploads import park_upload
from portal.services.resources import CategoryType, ContentType, Group
from portal.services.wizard import (
    REVIEW_STEP,
    STEPS,
    SubmissionError,
    WizardReference,
    WizardState,
    load_reference_data,
    submit_wizard,
)

logger = logging.getLogger(__name__)

STEP_TEMPLATES = [
    'submit/steps/category.html',
    'submit/steps/details.html',
    'submit/steps/personal.html',
    'submit/steps/content.html',
    'submit/steps/review.html',
]


def home(request: HttpRequest) -> HttpResponse:
    """Display the public landing page."""
    return render(
        request,
        'home.html',
        {
            'max_video_mb': getattr(settings, 'TESTIMONY_MAX_VIDEO_MB', 100),
            'max_audio_mb': getattr(settings, 'TESTIMONY_MAX_AUDIO_MB', 20),
        },
    )


def submit_success(request: HttpRequest) -> HttpResponse:
    return render(request, 'submit/success.html')


def _load_groups(request: HttpRequest, client: ApiClient, zone_id: str) -> Tuple[List[Group], Optional[str]]:
    """Fetch the groups of ``zone_id``; failures are reported, not raised."""

    if not zone_id:
        return [], None
    try:
        return client.get_groups(zone_id), None
    except ApiFailure as exc:
        messages.error(request, exc.message or 'Failed to load groups')
        return [], exc.message or 'Failed to load groups'


def _step_form(
    step: int,
    state: WizardState,
    reference: WizardReference,
    groups: Optional[List[Group]] = None,
    groups_error: Optional[str] = None,
    data=None,
    files=None,
):
    """Build the form for ``step``, bound to ``data`` or seeded from the session."""

    initial = dict(state.data)
    if step == 0:
        return CategoryStepForm(data, initial=initial, testimony_categories=reference.testimony_categories)
    if step == 1:
        return DetailsStepForm(
            data,
            initial=initial,
            category_type=state.category_type,
            networks=reference.networks,
            external_categories=reference.external_categories,
            zones=reference.zones,
            groups=groups,
            groups_error=bool(groups_error),
        )
    if step == 2:
        return PersonalInfoStepForm(data, initial=initial, countries=reference.countries)
    if step == 3:
        upload = state.upload or {}
        return ContentStepForm(
            data,
            files,
            initial=initial,
            has_pending_upload=bool(upload),
            pending_content_type=upload.get('kind', ''),
        )
    return None


def _render_step(
    request: HttpRequest,
    state: WizardState,
    reference: WizardReference,
    form=None,
    groups: Optional[List[Group]] = None,
    groups_error: Optional[str] = None,
    status: int = 200,
) -> HttpResponse:
    step = state.step
    if form is None:
        form = _step_form(step, state, reference, groups, groups_error)
    context: Dict[str, Any] = {
        'step': step,
        'step_title': STEPS[step],
        'step_template': STEP_TEMPLATES[step],
        'steps': [
            {'index': index, 'number': index + 1, 'title': title, 'done': index < step, 'current': index == step}
            for index, title in enumerate(STEPS)
        ],
        'is_first_step': step == 0,
        'is_review': step == REVIEW_STEP,
        'form': form,
        'state': state,
        'answers': state.data,
        'upload': state.upload,
        'reference': reference,
        'groups': groups or [],
        'groups_error': groups_error,
        'category_type': state.category_type,
        'category_types': CategoryType,
        'content_types': ContentType,
        'max_video_mb': getattr(settings, 'TESTIMONY_MAX_VIDEO_MB', 100),
        'max_audio_mb': getattr(settings, 'TESTIMONY_MAX_AUDIO_MB', 20),
    }
    if step == REVIEW_STEP:
        context['review_rows'] = state.review_rows(reference, groups)
    return render(request, 'submit/wizard.html', context, status=status)


@require_http_methods(['GET', 'POST'])
def submit(request: HttpRequest) -> HttpResponse:
    """Drive the submission wizard.

    ``GET`` renders the current step (``?step=N`` jumps back to an earlier
    step, never past the first incomplete one).  ``POST`` accepts an
    ``action`` of ``next``, ``back``, ``refresh`` (zone changed on the
    details step), ``restart`` or ``submit``.
    """

    client = ApiClient()
    state = WizardState.load(request.session)
    try:
        reference = load_reference_data(client)
    except ApiFailure as exc:
        message = exc.message or 'Failed to load data'
        messages.error(request, message)
        return render(request, 'submit/load_error.html', {'error_message': message}, status=503)

    if request.method == 'GET':
        requested = request.GET.get('step')
        if requested is not None:
            try:
                state.go_to(int(requested))
            except ValueError:
                pass
            state.save(request.session)
        groups, groups_error = ([], None)
        if state.step in (1, REVIEW_STEP) and state.category_type == CategoryType.REGION:
            groups, groups_error = _load_groups(request, client, state.get('zone_id'))
        return _render_step(request, state, reference, groups=groups, groups_error=groups_error)

    action = request.POST.get('action', 'next')
    if action == 'restart':
        state.discard(request.session)
        return redirect('submit')
    if action == 'back':
        state.go_back()
        state.save(request.session)
        return redirect('submit')

    step = state.step
    if step == REVIEW_STEP:
        return _submit_review(request, client, state)

    groups: List[Group] = []
    groups_error: Optional[str] = None
    if step == 1 and state.category_type == CategoryType.REGION:
        zone_id = request.POST.get('zone_id', '').strip()
        groups, groups_error = _load_groups(request, client, zone_id)
        if action == 'refresh' or zone_id != state.get('zone_id'):
            state.update({'zone_id': zone_id, 'church': request.POST.get('church', '')})
            state.save(request.session)
            return _render_step(request, state, reference, groups=groups, groups_error=groups_error)

    form = _step_form(step, state, reference, groups, groups_error, data=request.POST, files=request.FILES)
    if not form.is_valid():
        return _render_step(request, state, reference, form=form, groups=groups, groups_error=groups_error)

    if step == 1:
        state.update(form.relevant_data())
    elif step == 3:
        _store_content(state, form)
    else:
        state.update(form.cleaned_data)
    state.advance()
    state.save(request.session)
    return redirect('submit')


def _store_content(state: WizardState, form: ContentStepForm) -> None:
    """Record the testimony content, parking a newly uploaded file."""

    content_type = form.cleaned_data['content_type']
    if content_type == ContentType.TEXT:
        state.set_upload(None)
        state.update({'content_type': content_type, 'text_content': form.cleaned_data.get('text_content', '')})
        return
    upload = form.cleaned_data.get('file')
    if upload is not None:
        meta = park_upload(upload)
        meta['kind'] = content_type
        state.set_upload(meta)
    state.update({'content_type': content_type, 'text_content': ''})


def _submit_review(request: HttpRequest, client: ApiClient, state: WizardState) -> HttpResponse:
    incomplete = state.first_incomplete_step()
    if incomplete < REVIEW_STEP:
        state.go_to(incomplete)
        state.save(request.session)
        messages.error(request, f'Please complete the {STEPS[incomplete]} step before submitting.')
        return redirect('submit')
    try:
        submit_wizard(client, state)
    except SubmissionError as exc:
        # A group created before the failure is kept in the answers.
        state.save(request.session)
        messages.error(request, f'{exc.title}\n{exc.message}')
        return redirect('submit')
    state.discard(request.session)
    return redirect('submit_success')
