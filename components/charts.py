"""Plotly chart builders for the Smart Framework Control System."""

import plotly.express as px
import plotly.graph_objects as go
import pandas as pd

from models.building import Building
from config.defaults import STATUS_COLORS, STATUS_ORDER

_COLOR_BY_LABEL = {s.value: c for s, c in STATUS_COLORS.items()}


def status_totals_bar(totals: pd.DataFrame, title: str = "공정 현황 (전체)") -> go.Figure:
    """Bar chart of live units per status across the site."""
    fig = px.bar(
        totals, x="status", y="units",
        color="status",
        color_discrete_map=_COLOR_BY_LABEL,
        labels={"status": "", "units": "세대 수"},
        title=title,
    )
    fig.update_layout(showlegend=False, height=350)
    fig.update_traces(texttemplate="%{y}", textposition="outside")
    return fig


def building_progress_bar(progress: pd.DataFrame, title: str = "동별 공정 진행") -> go.Figure:
    """Stacked horizontal bars, one per building, split by status."""
    fig = go.Figure()
    for status in STATUS_ORDER:
        fig.add_trace(go.Bar(
            name=status.value,
            y=progress["building_name"],
            x=progress[status.value],
            orientation="h",
            marker_color=STATUS_COLORS[status],
        ))
    fig.update_layout(
        barmode="stack",
        title=title,
        xaxis_title="세대 수",
        height=max(350, len(progress) * 28),
        yaxis={"categoryorder": "array", "categoryarray": list(progress["building_name"])[::-1]},
        legend_title_text="",
    )
    return fig


def cured_donut(cured: int, live: int, title: str = "양생 완료율") -> go.Figure:
    """Donut of cured units against all live units."""
    remaining = live - cured
    fig = go.Figure(data=[go.Pie(
        labels=["양생완료", "진행/대기"],
        values=[cured, remaining],
        hole=0.6,
        marker_colors=[STATUS_COLORS[STATUS_ORDER[-1]], "#CBD5E1"],
        textinfo="percent+label",
    )])
    fig.update_layout(
        title=title,
        height=350,
        showlegend=False,
        annotations=[dict(text=f"{cured}/{live}", x=0.5, y=0.5, font_size=16, showarrow=False)],
    )
    return fig


def floor_status_heatmap(building: Building) -> go.Figure:
    """Floors by unit position, colored by workflow step; dead units left blank."""
    order = {s: i for i, s in enumerate(STATUS_ORDER)}
    positions = sorted({u.position for _, u in building.iter_units()})
    floors = sorted(building.floors, key=lambda f: f.level, reverse=True)

    z, text = [], []
    for floor in floors:
        by_pos = {u.position: u for u in floor.units}
        row_z, row_t = [], []
        for pos in positions:
            unit = by_pos.get(pos)
            if unit is None or unit.is_dead_unit:
                row_z.append(None)
                row_t.append("")
            else:
                row_z.append(order[unit.status])
                row_t.append(f"{unit.unit_number}<br>{unit.status.value}")
        z.append(row_z)
        text.append(row_t)

    steps = len(STATUS_ORDER) - 1
    colorscale = []
    for i, status in enumerate(STATUS_ORDER):
        colorscale.append([i / steps, STATUS_COLORS[status]])

    fig = go.Figure(data=go.Heatmap(
        z=z,
        x=[f"{p}호 라인" for p in positions],
        y=[f"{f.level}F" for f in floors],
        text=text,
        texttemplate="%{text}",
        colorscale=colorscale,
        zmin=0, zmax=steps,
        showscale=False,
        hovertemplate="%{y} %{x}<br>%{text}<extra></extra>",
    ))
    fig.update_layout(
        title=f"{building.name} 층별 현황",
        height=max(400, len(floors) * 26),
        yaxis_type="category",
    )
    return fig
