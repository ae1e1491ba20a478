"""
Page layouts and view helpers for the kiosk's Dash pages.

The helpers below only turn data into components or figures. Reading and
writing visits happens in the callbacks.
"""
from datetime import tzinfo
from typing import Dict, Iterable, Optional

import plotly.express as px
import plotly.graph_objects as go
from dash import dcc, html

from kiosk_app.lib.constants import LocationType, VisitorCategory
from kiosk_app.lib.models.dto import CounterStatsDTO, VisitDTO
from kiosk_app.lib.services.stats_service import local_time
from kiosk_app.lib.translations import category_label, location_label, translate

MODAL_HIDDEN = {'display': 'none'}
MODAL_VISIBLE = {'display': 'flex'}

LOCATION_COLORS = ['#f59e0b', '#4f46e5']
CATEGORY_COLORS = ['#0f172a', '#6366f1', '#10b981']

PAGES = [
    ('/', 'nav_checkin'),
    ('/dashboard', 'nav_analytics'),
    ('/history', 'nav_logs'),
]


def pad_ticket(number: int, width: int = 3) -> str:
    return str(number).zfill(width)


def serve_layout(default_language: str = 'en'):
    """Top-level layout: routing, the remembered language, nav bar and page slot."""
    return html.Div([
        dcc.Location(id='url', refresh=False),
        dcc.Store(id='language-store', storage_type='local', data=default_language),
        html.Div(id='navbar'),
        html.Main(id='page-content', className='main-content')
    ], className='app-shell')


def navbar(pathname: Optional[str], language: str, kiosk_name: str):
    links = []
    for href, key in PAGES:
        class_name = 'nav-link active' if pathname == href else 'nav-link'
        links.append(dcc.Link(translate(key, language), href=href, className=class_name))

    return html.Nav([
        html.Div([
            html.H1(kiosk_name, className='brand-title'),
            html.P(translate('subtitle', language), className='brand-subtitle')
        ], className='brand'),
        html.Div(links, className='nav-links'),
        html.Button(language.upper(), id='language-toggle', n_clicks=0, className='language-toggle')
    ], className='navbar')


def _location_card(location: LocationType, language: str):
    buttons = [
        html.Button(
            translate('student_login', language),
            id={'type': 'checkin-button', 'category': VisitorCategory.STUDENT.value, 'location': location.value},
            n_clicks=0,
            className='button primary'
        ),
        html.Button(
            translate('visitor_login', language),
            id={'type': 'checkin-button', 'category': VisitorCategory.VISITOR.value, 'location': location.value},
            n_clicks=0,
            className='button secondary'
        ),
    ]
    return html.Div([
        html.H3(location_label(location, language), className='card-title'),
        html.Div(buttons, className='card-buttons')
    ], className='location-card')


def _group_form(language: str):
    return html.Div([
        html.H3(translate('group_login', language), className='card-title'),
        dcc.Input(id='group-name', type='text', placeholder=translate('group_name', language),
                  maxLength=200, className='text-input'),
        dcc.Input(id='group-size', type='number', min=1, step=1, value=2,
                  placeholder=translate('group_size', language), className='text-input'),
        dcc.RadioItems(
            id='group-location',
            options=[{'label': location_label(loc, language), 'value': loc.value} for loc in LocationType],
            value=LocationType.MUSEUM.value,
            className='radio-options'
        ),
        html.Button(translate('group_submit', language), id='group-submit', n_clicks=0, className='button primary'),
        html.Div(id='group-error', className='inline-error')
    ], className='group-card')


def checkin_page(language: str):
    return html.Div([
        html.Div([
            html.H2(translate('welcome', language), className='hero-title'),
            html.P(translate('select_category', language), className='hero-text')
        ], className='hero'),
        html.Div([_location_card(loc, language) for loc in LocationType], className='card-grid'),
        _group_form(language),
        html.Div([
            html.Span(translate('daily_reset', language), className='badge'),
            html.Span(translate('tracking_enabled', language), className='badge')
        ], className='badges'),

        # Ticket popup, shown after a successful check-in
        html.Div([
            html.Div([
                html.Div(id='ticket-content'),
                html.Button(translate('close_ticket', language), id='close-ticket', n_clicks=0,
                            className='button primary')
            ], className='modal-body')
        ], id='ticket-modal', className='modal', style=MODAL_HIDDEN)
    ], className='checkin-page')


def ticket_content(visit: VisitDTO, language: str):
    children = [
        html.H3(translate('checkin_success', language), className='modal-title'),
        html.P(f"{translate('welcome_to', language)} {location_label(visit.location, language)}!"),
        html.P(translate('ticket_number', language), className='ticket-label'),
        html.Div(pad_ticket(visit.daily_number), className='ticket-number'),
    ]
    if visit.group_size > 1:
        children.append(html.P(f"{visit.group_info or translate('groups', language)} x{visit.group_size}"))
    children.append(html.P(translate('daily_reset', language), className='ticket-note'))
    return children


def _location_filter(component_id: str, language: str):
    options = [{'label': translate('all_locations', language), 'value': 'ALL'}]
    options += [{'label': location_label(loc, language), 'value': loc.value} for loc in LocationType]
    return dcc.RadioItems(id=component_id, options=options, value='ALL', className='radio-options')


def dashboard_page(language: str):
    return html.Div([
        html.Div([
            html.Div([
                html.H2(translate('analytics', language), className='header'),
                html.P(translate('overview', language))
            ]),
            _location_filter('dashboard-location', language)
        ], className='dashboard-header'),
        dcc.Loading(html.Div(id='stats-cards', className='stats-grid')),
        html.Div([
            dcc.Graph(id='location-chart'),
            dcc.Graph(id='category-chart')
        ], className='visualization-container')
    ], className='dashboard-page')


def stats_cards(stats: CounterStatsDTO, language: str):
    cards = [
        ('daily', stats.daily),
        ('weekly', stats.weekly),
        ('monthly', stats.monthly),
        ('yearly', stats.yearly),
        ('all_time', stats.all_time),
    ]
    return [
        html.Div([
            html.P(translate(key, language), className='stats-label'),
            html.P(f"{value:,}", className='stats-value')
        ], className=f'stats-card stats-{key}')
        for key, value in cards
    ]


def location_figure(distribution: Dict[str, int], language: str) -> go.Figure:
    fig = px.pie(
        names=[location_label(name, language) for name in distribution],
        values=list(distribution.values()),
        hole=0.5,
        color_discrete_sequence=LOCATION_COLORS,
        title=translate('dist_by_location', language)
    )
    fig.update_layout(margin=dict(t=60, b=20, l=20, r=20))
    return fig


def category_figure(split: Dict[str, int], language: str) -> go.Figure:
    names = [category_label(name, language) for name in split]
    fig = px.bar(
        x=names,
        y=list(split.values()),
        color=names,
        color_discrete_sequence=CATEGORY_COLORS,
        title=translate('visitor_split', language)
    )
    fig.update_layout(xaxis_title=None, yaxis_title=None, showlegend=False,
                      margin=dict(t=60, b=20, l=20, r=20))
    return fig


def history_page(language: str):
    return html.Div([
        html.Div([
            html.Div([
                html.H2(translate('visit_logs', language), className='header'),
                html.P(translate('log_desc', language))
            ]),
            html.Button(translate('download', language), id='export-button', n_clicks=0,
                        className='button primary')
        ], className='dashboard-header'),
        html.Div([
            _location_filter('history-location', language),
            dcc.DatePickerRange(
                id='history-date-range',
                start_date=None,
                end_date=None,
                display_format='YYYY-MM-DD',
                clearable=True
            )
        ], className='filters-container'),
        dcc.Loading(html.Div(id='history-table', className='table-container')),
        dcc.Download(id='export-download'),

        # Staff passcode gate for the export
        html.Div([
            html.Div([
                html.H3(translate('staff_access', language), className='modal-title'),
                html.P(translate('enter_passcode', language)),
                dcc.Input(id='passcode-input', type='password', placeholder=translate('passcode', language),
                          className='text-input', n_submit=0),
                html.Div(id='passcode-error', className='inline-error'),
                html.Div([
                    html.Button(translate('cancel', language), id='passcode-cancel', n_clicks=0,
                                className='button secondary'),
                    html.Button(translate('confirm', language), id='passcode-confirm', n_clicks=0,
                                className='button primary')
                ], className='modal-buttons')
            ], className='modal-body')
        ], id='passcode-modal', className='modal', style=MODAL_HIDDEN)
    ], className='history-page')


def visits_table(visits: Iterable[VisitDTO], language: str, tz: Optional[tzinfo] = None):
    header = html.Tr([
        html.Th(translate('date_time', language)),
        html.Th(translate('location', language)),
        html.Th(translate('category', language)),
        html.Th(translate('seq', language), className='numeric')
    ])

    rows = []
    for visit in visits:
        when = local_time(visit, tz)
        category = category_label(visit.category, language)
        if visit.category == VisitorCategory.GROUP:
            category = f"{category} ({visit.group_info or '-'}, {visit.group_size})"
        rows.append(html.Tr([
            html.Td([html.Div(when.strftime('%Y-%m-%d')), html.Div(when.strftime('%H:%M:%S'), className='muted')]),
            html.Td(location_label(visit.location, language)),
            html.Td(category),
            html.Td(f"#{pad_ticket(visit.daily_number, 4)}", className='numeric')
        ], key=visit.id))

    if not rows:
        rows.append(html.Tr([html.Td(translate('no_data', language), colSpan=4, className='empty')]))

    return html.Table([html.Thead(header), html.Tbody(rows)], className='visits-table')


def error_banner(message: str):
    return html.Div(
        message,
        style={'color': '#721c24', 'background-color': '#f8d7da', 'padding': '15px', 'border-radius': '4px'}
    )
