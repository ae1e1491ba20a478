import logging
from typing import Optional

from dash import ALL, Input, Output, State, ctx, dcc, html, no_update
from dash.exceptions import PreventUpdate
from pydantic import ValidationError

from kiosk_app import layouts
from kiosk_app.lib.constants import SUPPORTED_LANGUAGES, VisitorCategory
from kiosk_app.lib.models.dto import VisitFilterDTO
from kiosk_app.lib.services.auth_service import (
    is_staff_authenticated,
    mark_staff_authenticated,
    verify_passcode,
)
from kiosk_app.lib.services.export_service import export_filename, export_visits_csv
from kiosk_app.lib.services.stats_service import (
    category_split,
    compute_counter_stats,
    filter_visits,
    location_distribution,
)
from kiosk_app.lib.services.storage_service import StorageError
from kiosk_app.lib.translations import translate

logger = logging.getLogger(__name__)


def _date_only(value: Optional[str]) -> Optional[str]:
    # DatePickerRange may hand back 'YYYY-MM-DDT00:00:00'
    return value[:10] if value else None


def history_filter(location, start_date, end_date) -> VisitFilterDTO:
    return VisitFilterDTO(
        location=location,
        start_date=_date_only(start_date),
        end_date=_date_only(end_date)
    )


def submit_checkin(storage, trigger, group_name, group_size, group_location, language):
    """Save the check-in behind a location button or the group form.

    `trigger` is the pattern id of the pressed button, or 'group-submit'.
    Returns the ticket modal style, the ticket content and the group form error.
    """
    if trigger == 'group-submit':
        category, location, group_info = VisitorCategory.GROUP, group_location, group_name
    else:
        category, location, group_info = trigger['category'], trigger['location'], None
        group_size = 1

    try:
        visit = storage.save_visit(category, location, group_info=group_info, group_size=group_size)
    except ValidationError as e:
        logger.warning(f"Rejected check-in: {e}")
        return no_update, no_update, translate('invalid_group', language)
    except StorageError as e:
        logger.error(f"Error saving visit: {e}")
        return no_update, no_update, translate('error', language)

    return layouts.MODAL_VISIBLE, layouts.ticket_content(visit, language), ''


def export_download(storage, kiosk, visit_filter: VisitFilterDTO, language: str):
    """dcc.Download payload with the filtered visit log as CSV"""
    tz = kiosk.get_tz()
    visits = filter_visits(storage.get_visits(), visit_filter, tz)
    logger.info(f"Exporting {len(visits)} visits")
    return dcc.send_string(
        export_visits_csv(visits, language, tz),
        export_filename(storage.now().date(), kiosk.name),
        type='text/csv'
    )


def request_export(storage, kiosk, location, start_date, end_date, language):
    """Download straight away for an authenticated session, otherwise ask for the passcode.

    Returns the download payload and the passcode modal style.
    """
    if not is_staff_authenticated():
        return no_update, layouts.MODAL_VISIBLE
    try:
        return export_download(storage, kiosk, history_filter(location, start_date, end_date), language), no_update
    except (ValidationError, StorageError) as e:
        logger.error(f"Error exporting visits: {e}")
        return no_update, no_update


def unlock_export(storage, kiosk, passcode, location, start_date, end_date, language):
    """Check the staff passcode and, when it matches, open the session and download.

    Returns the download payload, the passcode modal style, the inline error
    and the new passcode input value.
    """
    if not verify_passcode(passcode, kiosk.staff_passcode):
        logger.warning("Rejected staff passcode")
        return no_update, no_update, translate('invalid_passcode', language), ''

    mark_staff_authenticated()
    try:
        download = export_download(storage, kiosk, history_filter(location, start_date, end_date), language)
    except (ValidationError, StorageError) as e:
        logger.error(f"Error exporting visits: {e}")
        return no_update, layouts.MODAL_HIDDEN, '', ''
    return download, layouts.MODAL_HIDDEN, '', ''


def register_callbacks(dash_app, config, storage):
    """Wire the Dash pages to the storage and stats services."""
    kiosk = config.kiosk
    tz = kiosk.get_tz()

    def current_language(language):
        return language if language in SUPPORTED_LANGUAGES else kiosk.default_language

    @dash_app.callback(
        Output('language-store', 'data'),
        Input('language-toggle', 'n_clicks'),
        State('language-store', 'data'),
        prevent_initial_call=True
    )
    def toggle_language(n_clicks, language):
        if not n_clicks:
            raise PreventUpdate
        return 'ms' if current_language(language) == 'en' else 'en'

    @dash_app.callback(
        [Output('navbar', 'children'),
         Output('page-content', 'children')],
        [Input('url', 'pathname'),
         Input('language-store', 'data')]
    )
    def display_page(pathname, language):
        language = current_language(language)
        nav = layouts.navbar(pathname, language, kiosk.name)
        if pathname in (None, '/'):
            return nav, layouts.checkin_page(language)
        elif pathname == '/dashboard':
            return nav, layouts.dashboard_page(language)
        elif pathname == '/history':
            return nav, layouts.history_page(language)
        return nav, html.Div('404', className='not-found')

    @dash_app.callback(
        [Output('ticket-modal', 'style'),
         Output('ticket-content', 'children'),
         Output('group-error', 'children')],
        [Input({'type': 'checkin-button', 'category': ALL, 'location': ALL}, 'n_clicks'),
         Input('group-submit', 'n_clicks')],
        [State('group-name', 'value'),
         State('group-size', 'value'),
         State('group-location', 'value'),
         State('language-store', 'data')],
        prevent_initial_call=True
    )
    def handle_checkin(button_clicks, group_clicks, group_name, group_size, group_location, language):
        """Check in from one of the location buttons or the group form"""
        trigger = ctx.triggered_id
        if trigger is None or not ctx.triggered[0]['value']:
            raise PreventUpdate
        return submit_checkin(storage, trigger, group_name, group_size, group_location,
                              current_language(language))

    @dash_app.callback(
        Output('ticket-modal', 'style', allow_duplicate=True),
        Input('close-ticket', 'n_clicks'),
        prevent_initial_call=True
    )
    def close_ticket(n_clicks):
        if n_clicks:
            return layouts.MODAL_HIDDEN
        return no_update

    @dash_app.callback(
        [Output('stats-cards', 'children'),
         Output('location-chart', 'figure'),
         Output('category-chart', 'figure')],
        [Input('dashboard-location', 'value'),
         Input('language-store', 'data')]
    )
    def update_dashboard(location, language):
        """Stat cards and the category split follow the location filter, the location chart does not"""
        language = current_language(language)
        try:
            visits = storage.get_visits()
            filtered = filter_visits(visits, VisitFilterDTO(location=location), tz)
            stats = compute_counter_stats(filtered, storage.now())
            return (
                layouts.stats_cards(stats, language),
                layouts.location_figure(location_distribution(visits), language),
                layouts.category_figure(category_split(filtered), language)
            )
        except StorageError as e:
            logger.error(f"Error updating dashboard: {e}")
            return layouts.error_banner(translate('error', language)), {}, {}

    @dash_app.callback(
        Output('history-table', 'children'),
        [Input('history-location', 'value'),
         Input('history-date-range', 'start_date'),
         Input('history-date-range', 'end_date'),
         Input('language-store', 'data')]
    )
    def update_history(location, start_date, end_date, language):
        language = current_language(language)
        try:
            visit_filter = history_filter(location, start_date, end_date)
        except ValidationError as e:
            logger.warning(f"Invalid history filter: {e}")
            return layouts.error_banner(translate('no_data', language))
        try:
            visits = filter_visits(storage.get_visits(), visit_filter, tz)
        except StorageError as e:
            logger.error(f"Error loading visit history: {e}")
            return layouts.error_banner(translate('error', language))
        return layouts.visits_table(visits, language, tz)

    @dash_app.callback(
        [Output('export-download', 'data'),
         Output('passcode-modal', 'style')],
        Input('export-button', 'n_clicks'),
        [State('history-location', 'value'),
         State('history-date-range', 'start_date'),
         State('history-date-range', 'end_date'),
         State('language-store', 'data')],
        prevent_initial_call=True
    )
    def handle_export(n_clicks, location, start_date, end_date, language):
        if not n_clicks:
            raise PreventUpdate
        return request_export(storage, kiosk, location, start_date, end_date, current_language(language))

    @dash_app.callback(
        [Output('export-download', 'data', allow_duplicate=True),
         Output('passcode-modal', 'style', allow_duplicate=True),
         Output('passcode-error', 'children'),
         Output('passcode-input', 'value')],
        [Input('passcode-confirm', 'n_clicks'),
         Input('passcode-input', 'n_submit')],
        [State('passcode-input', 'value'),
         State('history-location', 'value'),
         State('history-date-range', 'start_date'),
         State('history-date-range', 'end_date'),
         State('language-store', 'data')],
        prevent_initial_call=True
    )
    def confirm_passcode(n_clicks, n_submit, passcode, location, start_date, end_date, language):
        if not n_clicks and not n_submit:
            raise PreventUpdate
        return unlock_export(storage, kiosk, passcode, location, start_date, end_date,
                             current_language(language))

    @dash_app.callback(
        [Output('passcode-modal', 'style', allow_duplicate=True),
         Output('passcode-error', 'children', allow_duplicate=True)],
        Input('passcode-cancel', 'n_clicks'),
        prevent_initial_call=True
    )
    def cancel_passcode(n_clicks):
        if n_clicks:
            return layouts.MODAL_HIDDEN, ''
        return no_update, no_update
