"""
AppleScripts for Apple Reminders.

Scripts that return reminders separate fields with ``FIELD_SEPARATOR`` and reminders with ``RECORD_SEPARATOR``, since
titles and notes may contain line breaks. Dates are passed in and out as local ``YYYY-MM-DDTHH:MM:SS`` strings.
"""

FIELD_SEPARATOR = chr(31)
RECORD_SEPARATOR = chr(30)
#: Returned by scripts which look up a reminder by id when there is no such reminder.
NOT_FOUND = 'NOT_FOUND'

_date_handlers = '''
on isoDate(theDate)
    set y to year of theDate as integer
    set m to month of theDate as integer
    set d to day of theDate as integer
    set h to hours of theDate as integer
    set mi to minutes of theDate as integer
    set s to seconds of theDate as integer
    return (y as text) & "-" & my pad(m) & "-" & my pad(d) & "T" & my pad(h) & ":" & my pad(mi) & ":" & my pad(s)
end isoDate

on pad(n)
    return text -2 thru -1 of ("0" & (n as text))
end pad

on componentsToDate(isoText)
    set theDate to current date
    set day of theDate to 1
    set year of theDate to (text 1 thru 4 of isoText) as integer
    set month of theDate to (text 6 thru 7 of isoText) as integer
    set day of theDate to (text 9 thru 10 of isoText) as integer
    set hours of theDate to (text 12 thru 13 of isoText) as integer
    set minutes of theDate to (text 15 thru 16 of isoText) as integer
    set seconds of theDate to (text 18 thru 19 of isoText) as integer
    return theDate
end componentsToDate
'''

#: Get the incomplete reminders of the default list: id, name, due date and body of each.
get_reminders_script = '''on run argv
set fs to character id 31
set rs to character id 30
set output to ""
tell application "Reminders"
    set openReminders to every reminder of default list whose completed is false
    repeat with currentRem in openReminders
        set rDueDate to due date of currentRem
        if rDueDate is missing value then
            set dueText to ""
        else
            set dueText to my isoDate(rDueDate)
        end if
        set rBody to body of currentRem
        if rBody is missing value then set rBody to ""
        set output to output & (id of currentRem) & fs & (name of currentRem) & fs & dueText & fs & rBody & rs
    end repeat
end tell
return output
end run
''' + _date_handlers

#: Add a new reminder to the default list. The alarm is set to the due date.
add_reminder_script = '''on run argv
set {r_name, r_body, r_due} to {item 1, item 2, item 3} of argv
tell application "Reminders"
    tell default list
        set theReminder to make new reminder with properties {name:r_name}
    end tell
    if r_body is not equal to "" then
        set body of theReminder to r_body
    end if
    if r_due is not equal to "" then
        set dueDate to my componentsToDate(r_due)
        set due date of theReminder to dueDate
        set remind me date of theReminder to dueDate
    end if
    return id of theReminder
end tell
end run
''' + _date_handlers

#: Update the reminder with the given id. Empty title or due date leave the current value alone; the note is only
#: changed when the note mode is "set". Setting a due date replaces the alarm.
edit_reminder_script = '''on run argv
set {r_id, r_name, r_note_mode, r_body, r_due} to {item 1, item 2, item 3, item 4, item 5} of argv
set fs to character id 31
tell application "Reminders"
    if not (exists reminder id r_id) then
        return "NOT_FOUND"
    end if
    set theReminder to reminder id r_id
    set oldName to name of theReminder
    if r_name is not equal to "" then
        set name of theReminder to r_name
    end if
    if r_note_mode is equal to "set" then
        set body of theReminder to r_body
    end if
    if r_due is not equal to "" then
        set dueDate to my componentsToDate(r_due)
        set due date of theReminder to dueDate
        set remind me date of theReminder to dueDate
    end if
    set rDueDate to due date of theReminder
    if rDueDate is missing value then
        set dueText to ""
    else
        set dueText to my isoDate(rDueDate)
    end if
    set rBody to body of theReminder
    if rBody is missing value then set rBody to ""
    return (id of theReminder) & fs & (name of theReminder) & fs & dueText & fs & rBody & fs & oldName
end tell
end run
''' + _date_handlers

#: Delete the reminder with the given id, returning its name.
delete_reminder_script = '''on run argv
set r_id to item 1 of argv
tell application "Reminders"
    if not (exists reminder id r_id) then
        return "NOT_FOUND"
    end if
    set theReminder to reminder id r_id
    set oldName to name of theReminder
    delete theReminder
    return oldName
end tell
end run'''

#: Mark the reminder with the given id as completed now, returning its name.
complete_reminder_script = '''on run argv
set r_id to item 1 of argv
tell application "Reminders"
    if not (exists reminder id r_id) then
        return "NOT_FOUND"
    end if
    set theReminder to reminder id r_id
    set completed of theReminder to true
    set completion date of theReminder to current date
    return name of theReminder
end tell
end run'''
