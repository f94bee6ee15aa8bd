# fuzzkit

Building blocks for a web fuzzer. Inputs come from wordlists or shell commands and
are combined into requests. The requests are sent over HTTP. The responses are
filtered or matched, data is scraped out of them, and the results are printed to
the terminal or written to report files.

## Installation

```
pip install fuzzkit
```

To also install the test dependencies:

```
pip install "fuzzkit[test]"
```

## Modules

- `fuzzkit.models` holds the dataclasses that the other modules share:
  - `Config` and `InputProviderConfig` describe a job.
  - `Request` has a `copy()` method.
  - `Response` has `redirect_location()`, which returns the first `Location` header.
  - `Result` has `to_dict()`, which returns its JSON record.
  - `ScraperResult` holds the data one scraper rule extracted.
  - `result_from_response()` builds a `Result` from a `Response`.
- `fuzzkit.wordlist`: `WordlistInput` reads a wordlist file, or standard input when
  the path is `-`.
  - With `Config.extensions`, the keyword `FUZZ` also gets every word with each
    extension appended.
  - With `dir_search_compat`, each `%ext%` in a word is replaced by each extension
    in turn.
  - `ignore_wordlist_comments` drops comment lines and trailing ` #` comments,
    using `strip_comments()`.
- `fuzzkit.inputs`:
  - `InputProvider` combines sources in `clusterbomb`, `sniper` or `pitchfork`
    mode. Step through the combinations with `advance()` and `value()`. Other
    methods are `total()`, `reset()`, `set_position()`, `keywords()` and
    `activate_keywords()`.
  - `CommandInput` runs a shell command for each value, with `/bin/sh -c`, or
    `cmd.exe /C` on Windows, or `Config.input_shell` if that is set. The command
    gets the position in the `FFUF_NUM` environment variable. `Config.input_num`
    sets the number of values.
  - An `InputProviderConfig.encoders` string names encoders, separated by spaces,
    that are applied to a keyword's values. These are `b64encode`, `b64decode`,
    `hexencode`, `hexdecode`, `urlencode`, `urldecode`, `urlencodeall`,
    `htmlescape`, `htmlunescape`, `lower`, `upper`, `md5`, `sha1`, `sha224`,
    `sha256`, `sha384` and `sha512`.
  - A bad mode, an unreadable wordlist or an unknown encoder raises `InputError`.
- `fuzzkit.filters`:
  - `StatusFilter` matches on status code; `"all"` matches every status.
  - `SizeFilter` matches on size, `WordFilter` on word count and `LineFilter` on
    line count. These three take comma separated numbers and `low-high` ranges.
  - `RegexpFilter` matches a pattern against the headers and the body. Input
    keywords in the pattern are replaced by the escaped inputs.
  - `TimeFilter` takes `>ms` or `<ms`.
  - `new_filter_by_name()` builds a filter from one of the names `status`, `size`,
    `word`, `line`, `regexp` and `time`.
  - `MatcherManager` holds matchers, global filters and per-domain filters. Adding
    a filter or matcher of a kind that already exists appends to its value.
  - Values that cannot be parsed raise `FilterError`.
- `fuzzkit.runner`: `SimpleRunner` sends requests over a `requests` session.
  - TLS verification is off. Redirects are followed only with
    `Config.follow_redirects`. A proxy, or the replay proxy with `replay=True`, is
    used when one is configured.
  - `prepare()` replaces keywords in the method, URL, headers and body.
  - `execute()` skips the body when `ignore_body` is set or the announced length
    is over 5 MiB (`MAX_DOWNLOAD_SIZE`). It decodes gzip, deflate and brotli
    bodies and counts words and lines with `count_words()` and `count_lines()`.
  - `dump()` returns the raw request bytes.
  - Transport errors are raised as `requests` exceptions.
- `fuzzkit.scraper` has regexp and CSS-selector rules, read from JSON group files.
  - `from_dir(dirname, active)` loads the groups that are active, or named in the
    comma separated `active` string. It returns the scraper and a list of errors
    for individual files.
  - `Scraper.append_from_file()` adds the rules of one file.
  - `Scraper.execute()` applies the rules to a response.
- `fuzzkit.writers` writes reports with `write_json()`, `write_ejson()` (inputs in
  base64), `write_html()`, `write_markdown()` and `write_csv()`. `write_csv()` has
  an option to base64-encode the inputs.
- `fuzzkit.terminal`: `StdOutput` prints to the terminal and saves files.
  - It prints the banner, `progress()` lines, `info()`, `warning()` and `error()`
    messages, and results, in normal, multi-line, quiet or JSON style.
  - `save_file(filename, fmt)` takes the formats `json`, `ejson`, `html`, `md`,
    `csv`, `ecsv` and `all`.
  - `finalize()` writes the configured output file.
  - With `Config.output_directory` set, each request/response pair is stored in a
    file named by its MD5 hash.

## Example

```python
from fuzzkit.filters import MatcherManager, StatusFilter
from fuzzkit.models import Response

manager = MatcherManager()
manager.add_matcher("status", "200-299,301")
manager.add_filter("size", "0", False)

status = StatusFilter("200,301,400-410")
print(status.repr())                                  # 200,301,400-410
print(status.filter(Response(status_code=404)))       # True
```

Iterating over a wordlist:

```python
from fuzzkit.inputs import InputProvider
from fuzzkit.models import Config, InputProviderConfig

config = Config(input_providers=[InputProviderConfig(keyword="FUZZ", value="words.txt")])
provider = InputProvider(config)
while provider.advance():
    print(provider.value())   # {"FUZZ": b"..."}
```

Building a filter from a value it cannot parse raises `FilterError`:

```python
from fuzzkit.filters import FilterError, new_filter_by_name

try:
    new_filter_by_name("status", "invalid")
except FilterError as exc:
    print(exc)
```

## What it does not do

fuzzkit is a library, not a finished tool. It has no command-line program. It does
not run whole jobs: there is no worker pool, no job queue, no rate limiting or
delay handling, no auto-calibration and no interactive console. You write the loop
that takes inputs from `InputProvider`, sends them with `SimpleRunner`, checks
matchers and filters, and passes results to `StdOutput`.

## Running the tests

```
pytest
```