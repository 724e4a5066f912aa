from typer.testing import CliRunner

from wordlat.cli import app, main

ARCHIVE = """utt1 
0	1	1	1,0,
1	2	4	0,0,
2	3	2	0,1,
3	0,0,

"""

runner = CliRunner()


def test_cli_success(tmp_path):
    infile = tmp_path / 'char.ark'
    infile.write_text(ARCHIVE)
    outfile = tmp_path / 'word.ark'
    r = runner.invoke(app, ['4', f'ark:{infile}', f'ark,t:{outfile}'])
    assert r.exit_code == 0
    assert outfile.read_text().startswith('utt1 \n')


def test_main_exit_codes(tmp_path):
    infile = tmp_path / 'char.ark'
    infile.write_text(ARCHIVE)
    outfile = tmp_path / 'word.ark'
    symfile = tmp_path / 'words.txt'
    assert main(['4', str(infile), str(outfile),
                 '--save-symbols', str(symfile), '--max-length', '3',
                 '--beam', '10']) == 0
    assert symfile.exists()
    # Usage errors.
    assert main([]) == 1
    assert main(['4', str(infile)]) == 1
    # Configuration errors.
    assert main(['0', str(infile), str(outfile)]) == 1
    assert main(['4', str(infile), str(outfile),
                 '--graph-scale', '0']) == 1
    # Processing errors.
    assert main(['4', str(tmp_path / 'missing.ark'), str(outfile)]) == 1
    (tmp_path / 'bad.ark').write_text('utt1\n0 1 x 0,0,\n\n')
    assert main(['4', str(tmp_path / 'bad.ark'), str(outfile)]) == 1


def test_main_help():
    assert main(['--help']) == 0
    r = runner.invoke(app, ['--help'])
    assert r.exit_code == 0
    assert 'exponential' in r.output
    assert 'separator' in r.output


def test_main_without_separators(tmp_path):
    infile = tmp_path / 'char.ark'
    infile.write_text(ARCHIVE)
    outfile = tmp_path / 'word.ark'
    assert main(['', str(infile), str(outfile)]) == 0
    assert '1_4_2' in outfile.read_text()


def test_main_missing_input_keeps_output(tmp_path):
    outfile = tmp_path / 'word.ark'
    outfile.write_text('previous results\n')
    assert main(['4', str(tmp_path / 'missing.ark'), str(outfile)]) == 1
    assert outfile.read_text() == 'previous results\n'


def test_verbose_sets_config(tmp_path):
    from wordlat import config
    infile = tmp_path / 'char.ark'
    infile.write_text(ARCHIVE)
    outfile = tmp_path / 'word.ark'
    try:
        r = runner.invoke(
            app, ['4', str(infile), str(outfile), '--verbose', '1'])
        assert r.exit_code == 0
        assert config.verbosity == 1
        assert config.logger.level == 10  # DEBUG
    finally:
        config.init({'verbosity': 0})
    assert config.logger.level == 20  # INFO
