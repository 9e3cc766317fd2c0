import streamlit as st
import pandas as pd
import plotly.express as px

from pref_elo.config import (
    OUTPUT_FOLDER,
    RATED_GAMES_PREFIX,
    RATINGS_PREFIX,
    GAME_ID_COL,
    GAME_DATE_COL,
    PLAYER_COL,
    VISTS_COL,
    RATING_BEFORE_COL,
    EXPECTED_RESULT_COL,
    RESULT_COL,
    RATING_AFTER_COL,
    DEFAULT_INITIAL_RATING,
)

# --- Page Configuration ---
st.set_page_config(
    page_title="Preferans Ratings",
    page_icon="🃏",
    layout="wide",
    initial_sidebar_state="collapsed"
)

# --- Design System ---
ACCENT_COLORS = {
    "primary": "#FF6B6B",
    "chart_palette": [
        "#FF6B6B", "#3B82F6", "#10B981", "#F59E0B", "#8B5CF6",
        "#EC4899", "#06B6D4", "#84CC16", "#F97316", "#6366F1"
    ],
}

# Short English names for the sheet columns
GAME_COLUMN_NAMES = {
    GAME_ID_COL: "game_id",
    GAME_DATE_COL: "date",
    PLAYER_COL: "player",
    VISTS_COL: "vists",
    RATING_BEFORE_COL: "rating_before",
    EXPECTED_RESULT_COL: "expected_result",
    RESULT_COL: "result",
    RATING_AFTER_COL: "rating_after",
}


def apply_plotly_style(fig):
    """Apply consistent styling to Plotly figures.

    Text colors are not set explicitly so Streamlit can inject theme-aware
    colors; only grids and backgrounds use neutral colors.
    """
    system_font = '-apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, "Helvetica Neue", Arial, sans-serif'
    grid_color = "rgba(128, 128, 128, 0.4)"
    line_color = "rgba(128, 128, 128, 0.3)"

    fig.update_layout(
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        font=dict(family=system_font, size=16),
        xaxis=dict(gridcolor=grid_color, linecolor=line_color, showgrid=True, zeroline=False),
        yaxis=dict(gridcolor=grid_color, linecolor=line_color, showgrid=True, zeroline=False),
        legend=dict(title_text="", bgcolor="rgba(0,0,0,0)", borderwidth=0),
        hoverlabel=dict(bgcolor="rgba(50, 50, 50, 0.9)", font=dict(color="#FFFFFF", family=system_font, size=14)),
        dragmode=False,  # Disable pan/zoom to prevent scroll hijacking on mobile
    )
    return fig


def _latest(pattern):
    files = sorted(OUTPUT_FOLDER.glob(pattern))
    return files[-1] if files else None


# --- Data Loading Functions ---
@st.cache_data(ttl=3600)
def load_ratings_data():
    """Load the most recent ratings summary CSV."""
    path = _latest(f"{RATINGS_PREFIX}_*.csv")
    if path is None:
        return None
    return pd.read_csv(path)


@st.cache_data(ttl=3600)
def load_games_data():
    """Load the most recent rated games CSV with short column names."""
    path = _latest(f"{RATED_GAMES_PREFIX}_*.csv")
    if path is None:
        return None
    df = pd.read_csv(path)
    missing = [col for col in GAME_COLUMN_NAMES if col not in df.columns]
    if missing:
        # Written with --computed-only; nothing to chart
        return None
    df = df.rename(columns=GAME_COLUMN_NAMES)
    df['date'] = pd.to_datetime(df['date'], dayfirst=True, errors='coerce')
    df['delta'] = (df['rating_after'] - df['rating_before']).round(2)
    return df.sort_values(['game_id', 'player']).reset_index(drop=True)


def render_rankings(df_ratings):
    st.subheader("Current Ratings")
    col1, col2, col3 = st.columns(3)
    col1.metric("Players", len(df_ratings))
    col2.metric("Top rating", f"{df_ratings['rating'].max():.0f}")
    col3.metric("Latest game", int(df_ratings['last_game_id'].max()))

    st.dataframe(
        df_ratings,
        hide_index=True,
        use_container_width=True,
        column_config={
            "rank": st.column_config.NumberColumn("Rank"),
            "player": "Player",
            "rating": st.column_config.NumberColumn("Rating", format="%.1f"),
            "games_played": "Games",
            "last_game_id": "Last game",
            "last_game_date": "Last played",
        },
    )

    fig_dist = px.histogram(df_ratings, x='rating', nbins=20, labels={'rating': 'Rating'})
    fig_dist.update_traces(marker_color=ACCENT_COLORS["primary"])
    apply_plotly_style(fig_dist)
    fig_dist.update_layout(height=280, yaxis_title="", margin=dict(l=20, r=20, t=30, b=20))
    fig_dist.add_vline(x=DEFAULT_INITIAL_RATING, line_dash="dash", line_color="rgba(128, 128, 128, 0.5)")
    st.plotly_chart(fig_dist, use_container_width=True, config={'displayModeBar': False})


def render_tracker(df_games, df_ratings):
    st.subheader("Rating History")
    top_players = df_ratings['player'].head(5).tolist()
    selected = st.multiselect("Players", options=sorted(df_games['player'].unique()), default=top_players)
    if not selected:
        st.info("Select at least one player.")
        return

    df_sel = df_games[df_games['player'].isin(selected)]
    fig_rating = px.line(
        df_sel,
        x='game_id',
        y='rating_after',
        color='player',
        markers=True,
        labels={'game_id': 'Game', 'rating_after': 'Rating', 'player': 'Player'},
        color_discrete_sequence=ACCENT_COLORS["chart_palette"],
    )
    fig_rating.update_traces(hovertemplate='%{fullData.name}: %{y:.0f}<extra></extra>')
    apply_plotly_style(fig_rating)
    fig_rating.update_layout(hovermode='x unified', height=360, margin=dict(l=20, r=60, t=30, b=20))
    fig_rating.add_hline(y=DEFAULT_INITIAL_RATING, line_dash="dash", line_color="rgba(128, 128, 128, 0.5)",
                         annotation_text="Start")
    st.plotly_chart(fig_rating, use_container_width=True, config={'displayModeBar': False})

    player = st.selectbox("Game log", options=selected)
    df_player = df_games[df_games['player'] == player].sort_values('game_id', ascending=False)
    st.dataframe(
        df_player[['game_id', 'date', 'vists', 'rating_before', 'expected_result', 'result', 'rating_after', 'delta']],
        hide_index=True,
        use_container_width=True,
    )


def render_games(df_games):
    st.subheader("Games")
    game_ids = sorted(df_games['game_id'].unique(), reverse=True)
    game_id = st.selectbox("Game", options=game_ids)
    df_game = df_games[df_games['game_id'] == game_id].sort_values('vists', ascending=False)
    st.dataframe(
        df_game[['player', 'vists', 'rating_before', 'expected_result', 'result', 'rating_after', 'delta']],
        hide_index=True,
        use_container_width=True,
    )


# --- Main App ---
def main():
    st.title("Preferans Ratings")

    df_ratings = load_ratings_data()
    df_games = load_games_data()

    if df_ratings is None or df_ratings.empty:
        st.warning(f"No ratings found in {OUTPUT_FOLDER}. Run `python -m pref_elo.elo.engine` first.")
        return

    tab_rankings, tab_tracker, tab_games = st.tabs(["Rankings", "Tracker", "Games"])

    with tab_rankings:
        render_rankings(df_ratings)

    with tab_tracker:
        if df_games is None:
            st.warning("Rated games table not available.")
        else:
            render_tracker(df_games, df_ratings)

    with tab_games:
        if df_games is None:
            st.warning("Rated games table not available.")
        else:
            render_games(df_games)


if __name__ == "__main__":
    main()
