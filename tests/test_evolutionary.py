import random

import pytest

from tsp_aos.data import is_valid_tsp_solution
from tsp_aos.evolutionary import EvolutionConfig, GeneticOptimizer
from tsp_aos.solvers import tour_length


MODES = ["fixed", "ucb1"]


def _optimizer(oracle, n, seed=0, **overrides):
    cfg = EvolutionConfig(**{"population_size": 20, "generations": 30, "random_seed": seed, **overrides})
    return GeneticOptimizer(cfg, oracle, n, rng=random.Random(seed))


class TestConfig:
    def test_defaults(self):
        cfg = EvolutionConfig()
        assert cfg.mode == "ucb1"
        assert cfg.ucb_c == 2.0
        assert cfg.population_size == 100
        assert cfg.elite_ratio == 0.1
        assert cfg.generations == 1000
        assert cfg.mutation_rate == 0.01
        assert cfg.crossover_rate == 0.8
        assert cfg.two_opt_rate == 0.1
        assert cfg.k_neighbors == 20
        assert cfg.elite_count == 10

    def test_unknown_mode(self, square_oracle):
        with pytest.raises(ValueError):
            _optimizer(square_oracle, 4, mode="annealing")

    @pytest.mark.parametrize("ratio", [0.0, 0.05])
    def test_small_elite_ratio_is_accepted(self, square_oracle, ratio):
        opt = _optimizer(square_oracle, 4, elite_ratio=ratio)
        assert opt.cfg.elite_count == round(20 * ratio)

    @pytest.mark.parametrize("mode", MODES)
    def test_all_elite_population_of_one_runs(self, square_oracle, mode):
        # No offspring slots, so parents are never drawn.
        opt = _optimizer(square_oracle, 4, mode=mode, population_size=1, elite_ratio=1.0, generations=3)
        result = opt.evolve()
        assert len(opt.population) == 1
        assert is_valid_tsp_solution(result.tour, 4)
        assert [d for _, d in result.history] == [result.length] * 3

    @pytest.mark.parametrize("mode", MODES)
    def test_no_elites_fails_when_offspring_needed(self, square_oracle, mode):
        opt = _optimizer(square_oracle, 4, mode=mode, elite_ratio=0.0)
        opt.initialize_population()
        with pytest.raises(ValueError):
            opt.step(1)

    def test_selector_only_in_adaptive_mode(self, square_oracle):
        assert _optimizer(square_oracle, 4, mode="fixed").selector is None
        assert _optimizer(square_oracle, 4, mode="ucb1").selector is not None


class TestGeneration:
    @pytest.mark.parametrize("mode", MODES)
    def test_step_keeps_population_size_and_elites(self, mode, random_points, random_oracle):
        n, _, _ = random_points
        opt = _optimizer(random_oracle, n, mode=mode)
        opt.initialize_population()
        opt.sort_population()
        elite_routes = [list(ind.route) for ind in opt.population[: opt.cfg.elite_count]]
        old_population = list(opt.population)
        opt.step(1)
        assert len(opt.population) == opt.cfg.population_size
        assert [ind.route for ind in opt.population[: opt.cfg.elite_count]] == elite_routes
        assert not any(new is old for new in opt.population for old in old_population)
        assert opt.history == [(1, old_population[0].fitness)]

    def test_select_elite_is_a_view_of_sorted_population(self, random_points, random_oracle):
        n, _, _ = random_points
        opt = _optimizer(random_oracle, n)
        opt.initialize_population()
        opt.sort_population()
        elites = opt.select_elite()
        assert len(elites) == opt.cfg.elite_count
        assert all(e is p for e, p in zip(elites, opt.population))

    @pytest.mark.parametrize("mode", MODES)
    def test_parents_survive_step_unchanged(self, mode, random_points, random_oracle):
        n, _, _ = random_points
        opt = _optimizer(random_oracle, n, mode=mode, two_opt_rate=1.0, mutation_rate=1.0)
        opt.initialize_population()
        opt.sort_population()
        parents = opt.population[: opt.cfg.elite_count]
        snapshot = [(list(p.route), p.fitness, list(p.tabu_moves)) for p in parents]
        opt.step(1)
        assert [(list(p.route), p.fitness, list(p.tabu_moves)) for p in parents] == snapshot
        assert not any(p is ind for p in parents for ind in opt.population)

    @pytest.mark.parametrize("mode", MODES)
    def test_elitism_never_loses_best(self, mode, random_points, random_oracle):
        n, _, _ = random_points
        result = _optimizer(random_oracle, n, seed=5, mode=mode, generations=40).evolve()
        best = [d for _, d in result.history]
        assert all(b <= a for a, b in zip(best, best[1:]))
        assert result.length <= best[-1]

    @pytest.mark.parametrize("mode", MODES)
    def test_history_has_one_entry_per_generation(self, mode, random_points, random_oracle):
        n, _, _ = random_points
        result = _optimizer(random_oracle, n, mode=mode, generations=17).evolve()
        assert [g for g, _ in result.history] == list(range(1, 18))

    @pytest.mark.parametrize("mode", MODES)
    def test_population_stays_valid(self, mode, random_points, random_oracle):
        n, _, _ = random_points
        opt = _optimizer(random_oracle, n, mode=mode, generations=10, two_opt_rate=0.5, mutation_rate=0.5)
        opt.evolve()
        for ind in opt.population:
            assert is_valid_tsp_solution(ind.route, n)
            assert ind.fitness == pytest.approx(tour_length(random_oracle, ind.route))

    def test_adaptive_mode_pulls_every_operator(self, random_points, random_oracle):
        n, _, _ = random_points
        result = _optimizer(random_oracle, n, mode="ucb1", generations=5).evolve()
        stats = result.operator_stats
        assert set(stats) == {"crossover", "swap_mutation", "inversion_mutation", "two_opt"}
        assert all(s["pulls"] >= 1 for s in stats.values())
        # 18 offspring per generation, one pull each.
        assert sum(s["pulls"] for s in stats.values()) == 5 * 18

    @pytest.mark.parametrize("mode", MODES)
    def test_seeded_runs_repeat(self, mode, random_points, random_oracle):
        n, _, _ = random_points
        first = _optimizer(random_oracle, n, seed=11, mode=mode, generations=10).evolve()
        second = _optimizer(random_oracle, n, seed=11, mode=mode, generations=10).evolve()
        assert first.tour == second.tour
        assert first.history == second.history


@pytest.mark.parametrize("mode", MODES)
def test_square_instance_reaches_optimum(mode, square_oracle):
    result = _optimizer(square_oracle, 4, seed=3, mode=mode, generations=50).evolve()
    assert is_valid_tsp_solution(result.tour, 4)
    assert result.length == pytest.approx(4.0, abs=1e-6)
    assert len(result.history) == 50
    assert result.runtime >= 0.0
    assert result.solver_name == f"ga-{mode}"
