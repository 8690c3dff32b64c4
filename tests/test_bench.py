from life_bench import main, run_benchmark, time_generation
from universe import Universe


def test_time_generation_ticks_once():
    universe = Universe.from_pattern(6, 6, [(2, 1), (2, 2), (2, 3)])

    timings = time_generation(universe)

    assert universe.generation == 1
    assert set(timings) == {"tick()", "render()", "half_block_rows()", "packed_cells()"}
    assert all(v >= 0 for v in timings.values())


def test_line_timing_report(capsys):
    run_benchmark(5, width=16, height=16, seed=1, line_timing=True)

    out = capsys.readouterr().out
    assert "Universe: 16x16" in out
    assert "tick()" in out
    assert "TOTAL" in out


def test_cprofile_report_and_dump(tmp_path, capsys):
    dump = tmp_path / "prof.out"

    main(["-n", "3", "--width", "12", "--height", "10", "--seed", "2",
          "--dump", str(dump)])

    out = capsys.readouterr().out
    assert "Wall time" in out
    assert "By Self-Time" in out
    assert dump.exists()
