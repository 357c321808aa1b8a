# groupbot

Self-contained pieces for a group chat bot. Each module does one job. It parses command text, keeps state in SQLite, or builds the text of a reply. The package never sends anything to a chat service. That is left to the code that uses it.

## Install

```
pip install groupbot
```

For development, install the test extra and run the tests:

```
pip install -e ".[test]"
pytest
```

`groupbot.midi.render_wav` runs the external `timidity` program, so `timidity` must be on `PATH` if you want WAV output.

## Modules

- `groupbot.timer`: `Timer` is a group reminder. Its month, day, weekday, hour and minute are packed into one integer (`emdwhm`), and any of them may be -1, meaning "every".
  - `get_filled_timer` builds a timer from the groups of a "在…月…的…点…分时…提醒大家…" match, which may use Chinese numerals. When the input is invalid, the reason is left in `alert` and the timer stays disabled.
  - `get_filled_cron_timer` builds a reminder driven by a cron expression.
  - `Timer.timer_info` and `Timer.timer_id` give its normalised description and a 32-bit key.
  - `Timer.to_cq` gives the `@all` CQ message.
  - `chinese_num_to_int` and `chinese_char_to_int` read the numerals.
- `groupbot.wake`:
  - `next_wake_time(timer, now)` works out when a date-based timer should next be checked.
  - `should_fire(timer, now)` says whether the timer is due.
  - `first_week` finds the first given weekday of a month.
- `groupbot.clock`:
  - `CronSchedule` parses five-field cron expressions, including `@daily` and the other shortcuts. It has `matches` and `next_after`.
  - `Clock` keeps timers in a SQLite table and runs each one on its own thread, calling a `send(timer)` callback when the timer fires. Its methods are `register_timer`, `cancel_timer`, `list_timers`, `get_timer`, `add_timer_into_db`, `add_timer_into_map` and `close`.
- `groupbot.manager`:
  - `ManagerStore` holds each group's welcome and farewell templates and the members admitted through a gist.
  - `welcome_to_cq` fills `{at}`, `{nickname}`, `{avatar}`, `{uid}`, `{gid}` and `{groupname}`.
  - `unescape_brackets` turns `&#91;` and `&#93;` back into `[` and `]`.
  - `gist_filename` and `parse_join_answer` support join approval.
  - `check_new_user` approves a join request when the applicant's gist holds a Unix timestamp within 600 seconds. It fetches the gist with `urllib` unless you pass a `fetch` callable.
- `groupbot.moderation`:
  - `parse_ban_minutes` works out ban length, capped at 43199 minutes.
  - `set_verify_flag` and `set_gist_flag` switch the plugin-data bits.
  - `pick_lucky_member` chooses among the ten most recent speakers.
  - `parse_cron_reminder` splits the groups of a cron reminder command.
- `groupbot.imagefinder`:
  - `parse_search_result` parses an illustration search response. It raises `SearchError` when the response reports an error.
  - `search_url` builds the search address.
  - `clean_description`, `format_tags` and `image_name` shape the caption.
- `groupbot.midi`:
  - `build_midi` and `write_midi` turn note text such as `CCGGAAGR` or `C#6<-1` into a one-track MIDI file using `mido`.
  - `midi_to_text` turns a MIDI track back into note text.
  - `render_wav` calls `timidity`.
  - Ear-training helpers: `answer_for`, `random_target`, `process_one`, `score_round` and `validate_timbre`.
- `groupbot.nsfw`: `judge` and `auto_judge` turn classifier `Scores` into a verdict string. `auto_judge` returns `None` when there is nothing to say.
- `groupbot.moyu`:
  - `Holiday.describe` gives a countdown to a holiday.
  - `parse_holiday` and `format_holiday` read and write the `days_year_month_day` form.
  - `weekend_message` says how long until the weekend.
  - `build_reminder` assembles the daily "slacking" message.
- `groupbot.registry`:
  - `MarriageRegistry` is the store for the daily group-couple game. It keeps a roster per group that is renewed each day, the play modes, favorability kept within 0 to 100, and skill cooldowns.
  - `Status` and `Couple` describe a member's state.
  - `slice_name` shortens names that are too wide to draw.
- `groupbot.qqwife`: `check_propose`, `check_mistress`, `check_divorce` and `check_matchmaking` return `True` when the action is allowed. Otherwise they raise `Refusal`, whose `reason` is the message for the user.
- `groupbot.hyaku`:
  - `load_poems` reads the hundred-poem CSV into `Poem` records. `str(poem)` gives the labelled text.
  - `poem_assets` gives each poem's image paths.
  - `parse_poem_number` reads "百人一首之n".
- `groupbot.nihongo`: `GrammarStore` picks a random `Grammar` entry by tag or keyword from a SQLite database. `Grammar.describe` lays the entry out for display.
- `groupbot.lolicon`: `api_url` builds the random-image request, and `parse_image_url` reads the image URL from the response or raises `LoliconError`.

## Example

```python
from groupbot.timer import get_filled_timer

timer = get_filled_timer(["", "12", "每周", "8", "30", "", "起床"], 0, 123, False)
print(timer.timer_info())  # [123]12月0日-1周8:30
```

## What it does not do

The package has no bot runner. It does not:

- connect to a chat service, or receive events and dispatch commands;
- render text into images.

Apart from `check_new_user` and `render_wav`, nothing here fetches data or runs anything. In particular:

- Search and picture responses, holiday dates, the poem CSV and the grammar database must be obtained by the caller.
- The package only parses and stores them.

There is no command-line program.