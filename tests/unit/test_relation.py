"""Unit tests for batched relation loading."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from row_orm.core.engine import Engine
from row_orm.core.exceptions import MetadataError
from row_orm.mapping.metadata import belongs_to, domain_model, has_many


@domain_model
@dataclass
class Team:
    id: int | None = None
    name: str = ""
    players: list[Player] = has_many("Player")


@domain_model
@dataclass
class Player:
    id: int | None = None
    team_id: int | None = None
    name: str = ""
    team: Team | None = belongs_to(Team)


@domain_model
@dataclass
class Matchup:
    id: int | None = None
    home: Team | None = belongs_to(Team)


def _select_count(log: list) -> int:
    return sum(1 for sql, _ in log if sql.startswith("SELECT"))


@pytest.fixture
def league(engine: Engine, run_ddl) -> Engine:
    statements = [
        "CREATE TABLE teams (id INTEGER PRIMARY KEY, name TEXT)",
        "CREATE TABLE players (id INTEGER PRIMARY KEY, team_id INT, name TEXT)",
    ]
    for team_id in range(1, 101):
        statements.append(f"INSERT INTO teams (id, name) VALUES ({team_id}, 't{team_id}')")
    statements += [
        "INSERT INTO players (id, team_id, name) VALUES (1, 1, 'ann')",
        "INSERT INTO players (id, team_id, name) VALUES (2, 2, 'bob')",
        "INSERT INTO players (id, team_id, name) VALUES (3, 1, 'cyd')",
        "INSERT INTO players (id, team_id, name) VALUES (4, NULL, 'dee')",
        "INSERT INTO players (id, team_id, name) VALUES (5, 999, 'eve')",
    ]
    run_ddl(*statements)
    return engine


class TestToMany:
    @pytest.mark.parametrize("team_count", [1, 100])
    def test_one_query_per_relation(
        self, league: Engine, statement_log: list, team_count: int
    ) -> None:
        teams = league.select(Team).where("id <= ?", team_count).execute()
        statement_log.clear()
        league.resolve_relations(teams, "players")
        assert _select_count(statement_log) == 1

    def test_children_assigned_to_owners(self, league: Engine) -> None:
        teams = league.select(Team).where("id <= ?", 3).order_by("id").include("players").execute()
        assert [p.name for p in teams[0].players] == ["ann", "cyd"]
        assert [p.name for p in teams[1].players] == ["bob"]

    def test_owner_without_children_gets_empty_list(self, league: Engine) -> None:
        teams = league.select(Team).where("id = ?", 3).include("players").execute()
        assert teams[0].players == []

    def test_entity_order_preserved(self, league: Engine) -> None:
        teams = league.select(Team).where("id <= ?", 3).order_by("id DESC").execute()
        league.resolve_relations(teams, "players")
        assert [t.id for t in teams] == [3, 2, 1]

    def test_empty_collection_issues_no_query(self, league: Engine, statement_log: list) -> None:
        league.resolve_relations([], "players")
        assert statement_log == []

    def test_unsaved_owners_issue_no_query(self, league: Engine, statement_log: list) -> None:
        teams = [Team(name="new"), Team(name="newer")]
        league.resolve_relations(teams, "players")
        assert statement_log == []
        assert teams[0].players == []


class TestBelongsTo:
    def test_parents_loaded_in_one_query(self, league: Engine, statement_log: list) -> None:
        players = league.select(Player).order_by("id").execute()
        statement_log.clear()
        league.resolve_relations(players, "team")
        assert _select_count(statement_log) == 1
        assert players[0].team.name == "t1"
        assert players[0].team is players[2].team
        assert players[1].team.id == 2

    def test_unset_key_leaves_relation_empty(self, league: Engine) -> None:
        dee = league.select(Player).where("name = ?", "dee").include("team").execute()[0]
        assert dee.team_id is None
        assert dee.team is None

    def test_dangling_key_leaves_relation_empty(self, league: Engine) -> None:
        eve = league.select(Player).where("name = ?", "eve").include("team").execute()[0]
        assert eve.team_id == 999
        assert eve.team is None

    def test_dangling_key_does_not_affect_others(self, league: Engine) -> None:
        players = league.select(Player).order_by("id").include("team").execute()
        assert [p.team.name if p.team else None for p in players] == [
            "t1",
            "t2",
            "t1",
            None,
            None,
        ]

    def test_missing_foreign_key_field(self, league: Engine) -> None:
        with pytest.raises(MetadataError, match="home_id|team_id"):
            league.resolve_relations([Matchup(id=1)], "home")


class TestIncludeErrors:
    def test_unknown_relation_name(self, league: Engine) -> None:
        with pytest.raises(MetadataError, match="not a declared relation"):
            league.select(Team).include("coaches").execute()
